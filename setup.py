"""kikuchi -- cluster identification for the Cluster Variation Method"""
import os
import shutil

from setuptools import Command, find_packages, setup


# custom clean command to remove build artifacts
class clean(Command):
    description = "Remove build artifacts from the source tree"

    user_options = []

    def initialize_options(self):
        pass

    def finalize_options(self):
        pass

    def run(self):
        if os.path.exists("build"):
            shutil.rmtree("build")
        for dirpath, dirnames, filenames in os.walk("kikuchi"):
            for filename in filenames:
                if filename.endswith(".pyc"):
                    os.unlink(os.path.join(dirpath, filename))

            for dirname in dirnames:
                if dirname == "__pycache__":
                    shutil.rmtree(os.path.join(dirpath, dirname))


setup(
    name="kikuchi",
    version="0.1.0",
    description="Cluster and correlation function identification for the "
    "Cluster Variation Method",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.20",
        "pymatgen>=2022.0.0",
        "monty>=2022.9.9",
        "tqdm",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    cmdclass={"clean": clean},
    entry_points={"console_scripts": ["kikuchi = kikuchi.cli:main"]},
)
