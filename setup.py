from setuptools import setup


setup(
    version="0.4.0",
    name="batchpack",
    description="Replayable install, uninstall and packaging of build targets",
    author="MagicStack Inc.",
    author_email="hello@magic.io",
    packages=[
        "batchpack",
        "batchpack.commands",
        "batchpack.formats",
        "batchpack.tools",
    ],
    include_package_data=True,
    entry_points={
        "console_scripts": [
            "batchpack = batchpack.app:main",
        ]
    },
    python_requires=">=3.9",
    install_requires=[
        "cleo~=2.1",
        "distro~=1.9.0",
        "packaging>=23.1",
        "poetry~=1.8.3",
        "poetry-core~=1.9.0",
        'python-magic~=0.4.26; platform_system=="Linux" or (platform_machine!="x86_64" and platform_machine!="AMD64")',
        'python-magic-bin~=0.4.14; platform_system!="Linux" and platform_machine!="arm64"',
        "tomli>=1.2",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
        ]
    },
)
