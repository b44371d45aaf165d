from setuptools import setup, find_packages

setup(
    name="strikes",
    version="0.1.0",
    packages=find_packages(),
    py_modules=['generate_snapshot', 'live_map'],
    install_requires=[
        'requests>=2.28.0',
        'beautifulsoup4>=4.11.0',
        'pandas>=1.5.0',
        'numpy>=1.23.0',
        'folium>=0.14.0',
        'branca>=0.6.0',
        'PyYAML>=6.0'
    ],
    extras_require={
        'test': [
            'pytest>=7.3.0'
        ]
    },
    python_requires='>=3.8',
)
