from setuptools import find_packages, setup

with open("./README.md", encoding='utf-8') as in_:
    setup(
        name='xlsxwriter-reporter',
        version='0.1.0',
        packages=find_packages(where='src'),
        package_dir={
            "": "src"
        },
        license='MIT',
        description='Tabular Excel reports over XlsxWriter: ordered attribute columns, cascading styles and '
                    'batched streaming of large collections with progress reporting.',
        long_description=in_.read(),
        long_description_content_type="text/markdown",
        python_requires='>=3.7',
        install_requires=[
            "attrs",
            "xlsxwriter",
        ],
        extras_require={
            'testing': ['pytest', 'pytest-mock']
        },
    )
