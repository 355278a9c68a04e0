import pathlib

import setuptools

ROOT_PATH = pathlib.Path(__file__).parent.resolve()


setuptools.setup(
    name="pg-tmp",
    version="0.1.0",
    description="Ephemeral PostgreSQL servers for tests, with reusable data directories",
    long_description=(ROOT_PATH / "README.md").read_text(encoding="utf-8"),
    long_description_content_type="text/markdown",
    packages=["pg_tmp"],
    python_requires=">=3.8",
    install_requires=[
        "pg8000",
        "retry",
        "typer",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "pg-tmp=pg_tmp.__main__:main",
        ],
    },
)
