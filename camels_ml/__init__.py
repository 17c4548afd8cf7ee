"""Model selection and hyperparameter tuning for CAMELS basin attributes."""

__version__ = "0.1.0"
