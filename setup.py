from setuptools import setup, find_packages


setup(
    name="promptpack",
    version="0.1",
    packages=find_packages(include=["promptpack", "promptpack.*"]),
    description="Portable, optionally password-protected .pmtpk containers for prompt collections.",
    install_requires=[
        "pycryptodomex>=3.23.0",
    ],
    python_requires=">=3.9",
    entry_points={
        "console_scripts": [
            "promptpack=promptpack.cli:main",
        ]
    },
)
