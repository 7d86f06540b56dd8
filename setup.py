""" A setuptools-based setup module. """

from setuptools import setup, find_packages
from os import path

here = path.abspath(path.dirname(__file__))

# Get the long description from the README file
with open(path.join(here, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()

setup(
    name='roomledger', # Required

    # Versions should comply with PEP 440:
    # https://www.python.org/dev/peps/pep-0440/
    version='0.1.0',  # Required

    # A one-line description of what this project does.
    description=(
        'Contribution room, penalties and grants for Canadian registered '
        'accounts'),  # Optional

    # An optional longer description of the project. This is the same as
    # the README.
    long_description=long_description,  # Optional

    # The README is in Markdown.
    long_description_content_type='text/markdown',  # Optional

    # For a list of valid classifiers, see https://pypi.org/classifiers/
    classifiers=[  # Optional
        'Development Status :: 3 - Alpha',

        # Indicate who your project is intended for
        'Intended Audience :: Financial and Insurance Industry',
        'Topic :: Office/Business :: Financial',
        'Topic :: Software Development :: Libraries',

        'License :: Other/Proprietary License',

        'Programming Language :: Python :: 3',

        'Natural Language :: English'
    ],

    keywords='finance canada rrsp tfsa resp cesg contribution room',  # Optional

    packages=find_packages(exclude=['contrib', 'docs', 'tests']),  # Required

    # The JSON files in roomledger/data/ are read at runtime by
    # `Constants` and `Settings`.
    package_data={  # Optional
        'roomledger': ['data/*.json'],
    },

    python_requires='>=3.8',

    # This field lists other packages that your project depends on to run.
    # Any package you put here will be installed by pip when your project is
    # installed, so they must be valid existing projects.
    install_requires=[
        'py-moneyed>=0.7.0',
        'python-dateutil>=2.7.3',
        'structlog>=21.1.0'
    ],  # Optional

    # List additional groups of dependencies here (e.g. development
    # dependencies).
    extras_require={  # Optional
        'doc': ['sphinx'],
        'test': ['pytest']
    },
)
