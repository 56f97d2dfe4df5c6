from setuptools import setup, find_packages

import pathlib
HERE = pathlib.Path(__file__).parent
README = (HERE / "README.md").read_text()

# read the version without importing the package and its dependencies
about = {}
exec((HERE / "muschnorr" / "version.py").read_text(), about)
__version__ = about["__version__"]


setup(
    name="muschnorr",
    version=__version__,
    python_requires='>=3.7',
    description="Schnorr signatures, naive aggregation and the MuSig multi-signature protocol for python",
    long_description=README,
    long_description_content_type="text/markdown",
    author="rage-proof",
    license="MIT",
    classifiers=[
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.7",
    ],
    include_package_data=True,
    packages=find_packages(exclude=["tests"]),
    install_requires=['chacha20poly1305==0.0.3'],
    extras_require={'test': ['pytest']},
)
