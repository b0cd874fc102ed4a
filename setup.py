"""Setup script for CalendarFeed Lite."""

from pathlib import Path

from setuptools import find_packages, setup

# Read the README file
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

# Read requirements, separating test-only dependencies
requirements_file = Path(__file__).parent / "requirements.txt"
requirements = []
dev_requirements = []

if requirements_file.exists():
    for line in requirements_file.read_text().strip().split("\n"):
        line = line.split("#", 1)[0].strip()
        # Skip empty lines and comments
        if not line:
            continue

        if line.startswith("pytest"):
            dev_requirements.append(line)
        else:
            requirements.append(line)

setup(
    name="calendarfeed-lite",
    version="1.0.0",
    description="iCalendar feed decoder and recurring event expander",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="CalendarFeed Team",
    author_email="dev@calendarfeed.local",
    packages=find_packages(exclude=["tests*", "docs*"]),
    install_requires=requirements,
    extras_require={
        "dev": dev_requirements,
    },
    python_requires=">=3.11",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Office/Business :: Scheduling",
    ],
    keywords="calendar ics icalendar rrule recurrence",
    zip_safe=False,
)
