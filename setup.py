from setuptools import setup, find_packages

setup(
    name="olfsim",
    version="0.1.0",
    description="ORN -> LN -> PN -> KC olfactory circuit model with KC sparsity tuning",
    packages=find_packages(include=["olfsim", "olfsim.*"]),
    py_modules=["run_model"],
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "scipy",
        "matplotlib",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "olfsim-run=run_model:main",
        ],
    },
)
