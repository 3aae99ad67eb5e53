from setuptools import setup, find_packages

setup(
    name="ptoken-deployer",
    version="1.0.0",
    description="Deployment and operations tool for the upgradeable pToken ERC777 contract",
    packages=find_packages(),
    install_requires=[
        "web3>=6.0.0",
        "eth-account>=0.8.0",
        "eth-abi>=4.0.0",
        "eth-utils>=2.0.0",
        "aiohttp>=3.8.0",
        "pyyaml>=6.0",
        "jsonschema>=4.0.0",
        "python-dotenv>=1.0.0",
        "tabulate>=0.9.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    python_requires=">=3.8",
    entry_points={
        "console_scripts": [
            "ptoken-deployer=ptoken_deployer.main:run",
        ],
    },
)
