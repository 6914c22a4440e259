"""Evaluation metrics for chainfill."""

from .reconstruction import mae, rmse, nrmse, categorical_accuracy, evaluate_reconstruction

__all__ = ['mae', 'rmse', 'nrmse', 'categorical_accuracy', 'evaluate_reconstruction']
