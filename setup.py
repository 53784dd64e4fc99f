from setuptools import setup, find_packages

setup(
    name="migration-name-resolver",
    version="1.0.0",
    description="Unique username and group name resolution for platform migrations",
    author="Migration Tools Team",
    packages=find_packages(exclude=["*.tests", "*.tests.*"]),
    install_requires=[
        "boto3>=1.34.0",
        "cachetools>=5.3.0",
        "pynamodb>=6.0.0",
        "python-dotenv>=1.0.0",
        "regex>=2023.10.3",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "moto[dynamodb,ssm]>=5.0.0",
        ],
    },
    python_requires=">=3.11",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.12",
    ],
)
