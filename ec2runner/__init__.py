"""ec2runner - start, command and stop a single EC2 instance from a pipeline."""

__version__ = "0.1.0"
