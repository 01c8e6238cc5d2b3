from setuptools import setup

setup(
    name='pypfasst',
    version='0.1.0',
    license='BSD',
    description='Pure Python controllers for SDC, MLSDC and PFASST time integration',

    packages=['pfasst', 'pfasst.encap', ],

    install_requires=[
        'numpy',
    ]

)
