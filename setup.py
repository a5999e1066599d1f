from pathlib import Path

from setuptools import find_packages, setup

NAME = "ublinvoice"
VERSION = "0.4.0"
DESCRIPTION = "UBL 2.1 / EN16931 invoices: model, totals, business rules and XML codec"

README = Path("README.md")
LONG_DESCRIPTION = README.read_text(encoding="utf-8") if README.exists() else DESCRIPTION

PACKAGE_DATA = {"ublinvoice": ["data/*.json"]}

INSTALL_REQUIRES = [
    "lxml>=4.9",
    "openpyxl>=3.1",
]

EXTRAS_REQUIRE = {
    "test": ["pytest>=7.0"],
}

setup(
    name=NAME,
    version=VERSION,
    description=DESCRIPTION,
    long_description=LONG_DESCRIPTION,
    long_description_content_type="text/markdown",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages("src", include=["ublinvoice", "ublinvoice.*"]),
    package_data=PACKAGE_DATA,
    include_package_data=True,
    install_requires=INSTALL_REQUIRES,
    extras_require=EXTRAS_REQUIRE,
)
