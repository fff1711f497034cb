"""Search space, initial design, surrogate and acquisition components."""

from bayes_tuner.search.acquisition import AcquisitionOptimizer, expected_improvement
from bayes_tuner.search.configuration import Configuration
from bayes_tuner.search.design import DesignStrategy
from bayes_tuner.search.parameter import (
    DataSummary,
    FloatParameter,
    IntParameter,
    ProportionParameter,
    SearchParameter,
    predictor_count,
)
from bayes_tuner.search.space import SearchSpace
from bayes_tuner.search.surrogate import GaussianProcessSurrogate, SurrogateModel

__all__ = [
    "AcquisitionOptimizer",
    "expected_improvement",
    "Configuration",
    "DesignStrategy",
    "DataSummary",
    "SearchParameter",
    "FloatParameter",
    "IntParameter",
    "ProportionParameter",
    "predictor_count",
    "SearchSpace",
    "GaussianProcessSurrogate",
    "SurrogateModel",
]
