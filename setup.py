from setuptools import setup, find_packages

setup(
    name="chat-sync",
    version="0.1.0",
    description="Client side polling synchronization engine for one-to-one chat",
    author="Your Name",
    author_email="your.email@example.com",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "httpx>=0.27",
        "pydantic>=2.7",
        "environs>=11.0",
        "dishka>=1.4",
        "fastapi>=0.110",
        "uvicorn[standard]>=0.29",
        "python-jose[cryptography]>=3.3",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
        ],
    },
    python_requires=">=3.10",
    entry_points={
        "console_scripts": [
            "chat-sync=chat_sync.main:main",
            "chat-sync-devserver=chat_sync.devserver.app:main",
        ]
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
