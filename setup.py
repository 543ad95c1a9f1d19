from setuptools import setup, find_packages

setup(
    name="statement_converter",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pandas>=1.5",
        "numpy",
        "python-dateutil",
        "openpyxl",
        "xlrd",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-dependency",
        ],
    },
    author="Price Hatfield",
    description="A tool for converting bank statement exports into YNAB4 CSV imports",
    python_requires=">=3.8",
)
