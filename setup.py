import os

from setuptools import setup

COMPILED = ["src/pacer/_throttler.py"]

ext_modules = []
if os.getenv("PACER_COMPILE"):
    from mypyc.build import mypycify

    ext_modules = mypycify(COMPILED)

setup(
    ext_modules=ext_modules,
    package_dir={"": "src"},  # needed for CI
    # these two are defined in pyproject.toml
    # but added here for the sake of github:
    # See: https://github.com/github/feedback/discussions/6456
    name="pacer",
    install_requires=["typing-extensions"],
)
