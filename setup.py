from setuptools import find_packages, setup

setup(
    name="bucketd",
    version="0.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=[
        "fastapi",
        "uvicorn",
        "pydantic>=2",
        "cryptography>=42",
        "httpx[http2]",
        "click>=8",
        "psutil",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "bucketd=bucketd.cli:cli",
        ],
    },
)
