"""nbdeploy - JupyterLab deployments on DigitalOcean, AWS and Google Cloud."""

__version__ = "0.3.0"
