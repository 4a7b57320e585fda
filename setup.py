from setuptools import setup, find_packages

setup(
    name="ziparc",
    version="1.0.0",
    packages=find_packages(include=["ziparc", "ziparc.*"]),
    python_requires=">=3.9",
    install_requires=[],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "ziparc=ziparc.cli:main",
        ],
    },
)
