from setuptools import setup

setup(
    name="state-visualizer",
    version="0.1.0",
    packages=["state_visualizer"],
    python_requires=">=3.8",
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["state-visualizer=state_visualizer.cli:run"]},
)
