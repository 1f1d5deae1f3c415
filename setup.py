from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="resque-autoscaler",
    version="0.1.0",
    description="Scales a Resque worker fleet on Render or ECS based on the job backlog in Redis",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=[
        "boto3>=1.26.0",
        "botocore>=1.29.0",
        "redis>=4.0.0",
        "requests>=2.28.0",
        "retry>=0.9.2",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "resque-autoscaler=resque_autoscaler.main:main",
        ],
    },
)
