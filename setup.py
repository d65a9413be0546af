from setuptools import setup, find_packages

setup(
    name='batchlog',
    version='1.0.0',
    license='LICENSE',
    author='batchlog developers',
    packages=find_packages('src'),
    package_dir={'': 'src'},
    install_requires=[
        'pydantic>=2',
        'tablib[xlsx]',
    ],
    entry_points={
        'console_scripts': [
            'batchlog=batchlog.cli:main',
        ],
    },
    python_requires='>=3.9',
    keywords='batch command logging syslog email',
)
