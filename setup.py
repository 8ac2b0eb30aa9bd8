from setuptools import setup, find_packages

setup(
    name='bvh_sdk_python',
    version='0.1.0',
    description='BVH motion capture parsing and retargeting onto arbitrary skeletons',
    packages=find_packages(include=['bvh_sdk_python', 'bvh_sdk_python.*']),
    python_requires='>=3.8',
    install_requires=[
        'numpy',
        'scipy',
        'loop-rate-limiters',
    ],
    extras_require={
        'tests': ['pytest'],
    },
)
