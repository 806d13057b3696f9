#!/usr/bin/env python3
"""
HPKI Prescription Signer Setup
"""

from setuptools import setup, find_packages
import os

# Read version from file
def read_version():
    version_file = os.path.join(os.path.dirname(__file__), 'hpki_signer', '_version.py')
    namespace = {}
    with open(version_file, 'r') as f:
        exec(f.read(), namespace)
    return namespace['__version__']

# Read README for long description
def read_readme():
    readme_file = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_file):
        with open(readme_file, 'r', encoding='utf-8') as f:
            return f.read()
    return "XAdES-BES signer and verifier for HPKI electronic prescriptions"

setup(
    name="hpki-signer",
    version=read_version(),
    description="XAdES-BES signer and verifier for HPKI electronic prescriptions",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Healthcare Industry",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Security :: Cryptography",
        "Topic :: Text Processing :: Markup :: XML",
    ],
    python_requires=">=3.8",
    install_requires=[
        "cryptography>=41.0.0",
        "lxml>=4.9.0",
        "pyasn1>=0.5.0",
        "pyasn1-modules>=0.3.0",
    ],
    extras_require={
        "hsm": [
            "PyKCS11>=1.5.12",
        ],
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "pytest-mock>=3.10.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "hpki-sign=hpki_signer.cli:main",
            "hpki-verify=hpki_signer.cli:verify_main",
        ],
    },
    include_package_data=True,
    package_data={
        "hpki_signer": ["py.typed"],
    },
    keywords=[
        "xades", "xmldsig", "hpki", "e-prescription", "pkcs11",
        "digital-signatures", "smart-card"
    ],
    zip_safe=False,
)
