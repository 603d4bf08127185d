from setuptools import setup, find_packages

setup(
    name="gaspulse",
    version="1.0.0",
    description="Gas price and blob base fee tracker with cached rolling history and window statistics",
    packages=find_packages(include=["gaspulse", "gaspulse.*"]),
    python_requires=">=3.10",
    install_requires=[
        "requests>=2.31",
        "python-dotenv>=1.0",
    ],
    extras_require={
        "plots": ["matplotlib>=3.7"],
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "gaspulse=gaspulse.__main__:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
