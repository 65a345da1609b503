from setuptools import setup, find_packages
import os

# Read version
with open(os.path.join('fixtureforge', 'VERSION'), 'r') as f:
    version = f.read().strip()

setup(
    name='fixtureforge',
    version=version,
    packages=find_packages(include=['fixtureforge', 'fixtureforge.*']),
    include_package_data=True,
    install_requires=[
        'sqlparse>=0.4.4',
        'sqlalchemy>=2.0.0',
        'pymysql>=1.0.0',
        'psycopg2-binary>=2.9.0',
        'PyYAML>=6.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
    ],
    entry_points={
        'console_scripts': [
            'fixtureforge=fixtureforge.main:main',
        ],
    },
    package_data={
        '': ['VERSION'],
    },
)
