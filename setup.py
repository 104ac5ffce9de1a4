from pathlib import Path
from setuptools import setup, find_packages


def read_readme() -> str:
    readme_path = Path(__file__).resolve().parent / "README.md"
    return readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""


setup(
    name="secureflow",
    version="1.0.0",
    packages=find_packages(include=["secureflow", "secureflow.*"]),
    install_requires=[
        "cryptography>=41.0.0",
        "colorama>=0.4.6",
        "PyYAML>=6.0",
    ],
    entry_points={
        "console_scripts": [
            "secureflow=secureflow.main:main",
        ],
    },
    python_requires=">=3.10",
    author="SecureFlow contributors",
    description="Encrypt project secrets into OpenSSL-compatible Salted__ containers",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
)
