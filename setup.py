from setuptools import setup, find_packages

setup(
    name="timetravel",
    version="0.1.0",
    description="Live and manual clocks with deterministic timer and ticker replay",
    author="adamfilli",
    packages=find_packages(include=["timetravel", "timetravel.*"]),
    install_requires=[
        "pandas",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    include_package_data=True,
    python_requires=">=3.11",
)
