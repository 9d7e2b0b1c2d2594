from setuptools import setup, find_packages

setup(
    name="xfetch",
    version="0.1.0",
    description="Cache entries with probabilistic early expiration (XFetch)",
    packages=find_packages(),
    install_requires=[
        "pydantic>=2.0.0",
        "python-dotenv>=0.19.0",
        "PyYAML>=5.4",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    python_requires=">=3.8",
)
