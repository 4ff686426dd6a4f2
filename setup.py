from setuptools import setup, find_packages

setup(
    name='localbin',
    version='0.1.0',
    description='Install curated command-line tools from GitHub Releases into ~/.local/bin',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    python_requires='>=3.10',
    install_requires=[
        'requests',
        'urllib3',
        'rich',
        'platformdirs',
        'PyYAML',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-mock',
        ],
    },
    entry_points={
        'console_scripts': [
            'localbin=localbin.cli:main',
        ],
    },
)
