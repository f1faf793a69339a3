import setuptools

setuptools.setup(
    name='rlinsolve',
    version='0.1.0',
    author='',
    description='Randomized sketch-and-project solvers for linear least squares',
    packages=setuptools.find_packages(include=['rlinsolve', 'rlinsolve.*']),
    classifiers=[
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Natural Language :: English',
        'License :: OSI Approved :: Apache Software License',
        'Development Status :: 2 - Pre Alpha',
        'Operating System :: OS Independent',
        'Intended Audience :: Science/Research',
        'Topic :: Scientific/Engineering :: Mathematics'
    ],
    python_requires='>=3.8',
    install_requires=["numpy >= 1.20",
                      "scipy >= 1.8",
                      "pytest"]
)
