from setuptools import setup

setup(
    name='bridge-forwarder',
    version='0.1.0',
    description='Deterministic per-recipient bridge forwarders with CREATE2 address prediction',
    author='Ziver-opensource',
    package_dir={'forwarder': 'src/forwarder'},
    packages=['forwarder', 'forwarder.adapters', 'forwarder.cli'],
    include_package_data=True,
    install_requires=[
        'click>=7.0',
        'rich>=9.0',
        'eth-utils>=2.0',
        'eth-hash[pycryptodome]>=0.3',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'forwarder = forwarder.cli.main:cli'
        ]
    },
    classifiers=[
        'Programming Language :: Python :: 3',
    ],
)
