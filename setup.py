from setuptools import setup, find_packages

setup(
    name="sargassum_core",
    version="1.0.0",
    packages=find_packages(include=["sargassum_core", "sargassum_core.*"]),
    install_requires=[
        "numpy>=1.20.0",
        "requests>=2.25.0",
        "flask>=2.0.0",
        "flask-cors>=3.0.10",
        "geojson>=2.5.0",
    ],
    extras_require={
        "dev": [
            "pytest>=6.0.0",
            "black>=21.5b2",
            "flake8>=3.9.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "sargassum-drift=sargassum_core.main:main",
            "sargassum-drift-server=sargassum_core.server:run_server",
        ],
    },
    author="SKAGE.dev",
    author_email="user@example.com",
    description="Sargassum Drift Visualization Engine",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    url="https://github.com/username/sargassum-drift",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
)
