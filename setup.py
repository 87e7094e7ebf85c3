from setuptools import setup, find_packages

# Read long description from README
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="cloudmusic",
    version="0.1.0",
    author="CloudMusic Contributors",
    description="Cloud music library client: S3 uploads, SRT lyrics and synchronized lyrics view",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/cloudmusic/cloudmusic",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Sound/Audio",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    python_requires=">=3.8",
    install_requires=[
        "requests>=2.28.0",
    ],
    extras_require={
        "ai": [
            "litellm>=1.40.0",
        ],
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.0.0",
        ],
    },
    include_package_data=True,
    keywords="music s3 sigv4 object-storage srt lyrics subtitles",
    project_urls={
        "Bug Reports": "https://github.com/cloudmusic/cloudmusic/issues",
        "Source": "https://github.com/cloudmusic/cloudmusic",
        "Documentation": "https://github.com/cloudmusic/cloudmusic#readme",
    },
)
