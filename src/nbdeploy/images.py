"""Notebook flavors and the images that provide them."""

DEFAULT_IMAGE = "jupyter/base-notebook"

# Jupyter Docker Stacks, see
# https://jupyter-docker-stacks.readthedocs.io/en/latest/using/selecting.html
FLAVOR_IMAGES: dict[str, str] = {
    "Base": "jupyter/base-notebook",
    "Minimal": "jupyter/minimal-notebook",
    "R": "jupyter/r-notebook",
    "SciPy": "jupyter/scipy-notebook",
    "Tensorflow": "jupyter/tensorflow-notebook",
    "Datascience (Julia/Python/R)": "jupyter/datascience-notebook",
    "PySpark (SciPy image with support for Spark)": "jupyter/pyspark-notebook",
    "All Spark (Most comprehensive; Python, R, Scala, Julia, SciPy)": "jupyter/all-spark-notebook",
}

# Google Deep Learning VM image families, see
# https://cloud.google.com/deep-learning-vm/docs/images
GCP_CPU_IMAGE_FAMILIES = [
    "common-cpu",
    "tf-latest-cpu",
    "tf-ent-latest-cpu",
    "tf2-latest-cpu",
    "pytorch-latest-cpu",
    "r-latest-cpu-experimental",
    "chainer-latest-cpu-experimental",
    "xgboost-latest-cpu-experimental",
    "mxnet-latest-cpu-experimental",
    "cntk-latest-cpu-experimental",
    "caffe1-latest-cpu-experimental",
]

GCP_GPU_IMAGE_FAMILIES = [
    "common-cu101",
    "common-cu100",
    "common-cu92",
    "common-cu91",
    "common-cu90",
    "tf-latest-gpu",
    "tf-ent-latest-gpu",
    "tf2-latest-gpu",
    "pytorch-latest-gpu",
    "rapids-latest-gpu-experimental",
    "chainer-latest-gpu-experimental",
    "xgboost-latest-gpu-experimental",
    "mxnet-latest-gpu-experimental",
    "cntk-latest-gpu-experimental",
    "caffe1-latest-gpu-experimental",
]


def resolve_image(flavor: str) -> str:
    """Map a notebook flavor label to its container image.

    Unknown labels fall back to the base notebook image.
    """
    return FLAVOR_IMAGES.get(flavor, DEFAULT_IMAGE)


def gcp_image_families(gpu: bool) -> list[str]:
    """Return the Deep Learning VM image families for CPU or GPU instances."""
    return GCP_GPU_IMAGE_FAMILIES if gpu else GCP_CPU_IMAGE_FAMILIES
