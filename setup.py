from setuptools import find_packages, setup


setup(
    name="entity-graph-analytics",
    version="0.1.0",
    description="Community detection, PageRank and betweenness analytics over the entity graph",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0.0",
        "httpx>=0.24.0",
        "confluent-kafka>=2.0.0",
        "prometheus-client>=0.17.0",
    ],
    extras_require={
        "test": ["pytest>=7.0.0"],
    },
    entry_points={
        "console_scripts": [
            "graph-analytics=graph_algorithms.main:main",
        ],
    },
)
