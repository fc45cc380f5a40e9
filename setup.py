try:
    from setuptools import setup
except ImportError:
    from distutils.core import setup

classifiers = [
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.8",
    "Programming Language :: Python :: 3.9",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Intended Audience :: Developers",
    "Topic :: Internet :: WWW/HTTP :: Site Management",
    "Topic :: Text Processing :: Markup :: Markdown",
    "Topic :: Utilities",
    "Development Status :: 3 - Alpha",
    "Operating System :: OS Independent",
]

packages = [
    'wphugo',
]

with open("README.md", "r") as fp:
    long_description = fp.read()

setup(name="wphugo",
      version="0.1.0",
      packages=packages,
      python_requires=">=3.8",
      install_requires=["requests", "python-frontmatter", "PyYAML", "tqdm"],
      extras_require={"test": ["pytest"]},
      entry_points={"console_scripts": ["wphugo = wphugo.cli:main"]},
      description="Mirror WordPress posts into a Hugo site",
      long_description=long_description,
      long_description_content_type='text/markdown',
      license="Community Clause BSD-3",
      classifiers=classifiers
)
