"""Project metadata shared by the CLI and packaging."""

PROJECT_NAME = "helios"
VERSION = "0.1.0"
