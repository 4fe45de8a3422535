from setuptools import setup, find_packages


setup(
    name="beam",
    version="0.1",
    packages=find_packages(include=["beam", "beam.*"]),
    description="Pack many small files into fixed-capacity blocks with per-file and per-block SHA-256 checksums.",
    install_requires=[
        "PyYAML>=6.0",
    ],
    entry_points={
        "console_scripts": [
            "beam=beam.cli:main",
        ]
    },
)
