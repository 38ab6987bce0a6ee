# setup.py
from setuptools import setup, find_packages

setup(
    name="bitfrac",
    version="0.1.0",
    packages=find_packages(),
    python_requires=">=3.10",
    install_requires=[
        "msgpack",         # state records
        "rlp",             # trie nodes
        "pycryptodome",    # keccak
        "cryptography",    # ECDSA identities
        "plyvel",          # LevelDB
        "prometheus_client",
        "psutil",          # monitoring
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "bitfrac=bitfrac.cli:main",
        ],
    },
)
