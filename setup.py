from setuptools import setup, find_packages

setup(
    name='ranchertest',
    version='0.1.0',
    packages=find_packages(exclude=['*.tests']),
    include_package_data=True,
    install_requires=[
        'typer',
        'fastapi',
        'uvicorn',
        'kubernetes',
        'python-dotenv',
        'requests',
        'pyyaml',
        'pydantic>=2',
        'paramiko',
    ],
    extras_require={
        'test': [
            'pytest',
            'httpx',
        ],
    },
    entry_points={
        'console_scripts': [
            'ranchertest=ranchertest.cli:run'
        ]
    },
    description='Helpers to deploy Rancher Manager and drive provisioning clusters in end-to-end tests',
    classifiers=[
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.9',
)
