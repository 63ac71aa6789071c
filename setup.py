from setuptools import setup, find_packages

setup(
    name="graph-ising",
    version="0.1.0",
    description="Metropolis Monte Carlo for the Ising model on arbitrary graphs, "
                "with temperature sweeps and critical temperature estimation",
    license="MIT",
    packages=find_packages(exclude=["tests*", "scripts*", "configs*"]),
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.26",
        "scipy>=1.12",
        "numba>=0.59",
        "matplotlib>=3.8",
        "pyyaml>=6.0",
        "tqdm>=4.66",
    ],
    extras_require={
        "dev": [
            "pytest>=8.0",
            "pytest-cov>=5.0",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Topic :: Scientific/Engineering :: Physics",
    ],
)
