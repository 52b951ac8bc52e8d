from setuptools import setup, find_packages
setup(
    name="property_weather_search",
    version="0.0.1",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "fastapi>=0.100",
        "pydantic>=2",
        "httpx>=0.24",
        "uvicorn",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        'console_scripts': [
            'property_weather_search=property_weather_search.__main__:main'
        ]
    }
)
