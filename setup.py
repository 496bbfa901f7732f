import setuptools

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setuptools.setup(
    author="Aptos Labs",
    author_email="opensource@aptoslabs.com",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
    ],
    entry_points={"console_scripts": ["ccip=aptos_ccip.cli:main"]},
    extras_require={"test": ["pytest"]},
    include_package_data=True,
    install_requires=[
        "aptos-sdk",
        "click",
        "eth-abi",
        "eth-account",
        "eth-utils",
        "httpx",
        "python-dotenv",
        "tomli",
        "web3",
    ],
    long_description=long_description,
    long_description_content_type="text/markdown",
    name="aptos_ccip",
    package_data={"aptos_ccip": ["abi/*.json"]},
    packages=setuptools.find_packages(include=["aptos_ccip", "aptos_ccip.*"]),
    python_requires=">=3.8",
    url="https://github.com/aptos-labs/aptos-core",
    version="0.1.0",
)
