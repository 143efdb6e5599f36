from setuptools import setup

with open("./README.md") as f:
    long_description = f.read()

setup(
    name="counted-avl",
    description=("AVL tree maps with logarithmic-time access to entries by"
                 + " in-order rank"),
    long_description=long_description,
    long_description_content_type="text/x-markdown",
    packages=['counted_avl'],
    py_modules=['profile_tree'],
    version='0.1',
    python_requires='>=3.7',
    extras_require={
        'test': ['pytest', 'sortedcontainers'],
        'profile': ['sortedcontainers'],
    },
    classifiers=[
        "Programming Language :: Python :: 3.7",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Operating System :: OS Independent",
        "License :: OSI Approved :: MIT License",
    ])
