from typing import Any, Dict, List, Optional, Tuple
import pandas as pd
from sklearn.ensemble import RandomForestClassifier
from sklearn.metrics import f1_score, make_scorer
from sklearn.model_selection import GridSearchCV, ParameterGrid
from mlpipeline.utils.logging_utils import PipelineLogger

DEFAULT_PARAM_GRID = {
    'n_estimators': [50, 100, 200],
    'max_depth': [None, 5, 10],
    'min_samples_split': [2, 5],
    'min_samples_leaf': [1, 2]
}

logger = PipelineLogger(name="HyperparameterTuning")


def optimize_hyperparameters(X: pd.DataFrame, y: pd.Series,
                             param_grid: Optional[Dict[str, List[Any]]] = None,
                             cv: int = 5, scoring: Optional[Any] = None,
                             estimator: Optional[Any] = None,
                             n_jobs: Optional[int] = None) -> Tuple[Any, Dict[str, Any], float]:
    """
    Grid-search cross-validation over a classifier's parameters.

    The number of folds is capped at the size of the smallest class so that
    stratified splitting stays possible.

    Returns:
        Tuple of (best refitted estimator, best parameters, best mean CV score)
    """
    param_grid = param_grid or DEFAULT_PARAM_GRID
    estimator = estimator if estimator is not None else RandomForestClassifier(random_state=42)

    class_counts = pd.Series(y).value_counts()
    smallest_class = int(class_counts.min())
    if smallest_class < 2:
        raise ValueError(
            f"Cross-validation needs at least 2 samples per class, smallest class has {smallest_class}"
        )
    folds = min(cv, smallest_class)
    if folds < cv:
        logger.logger.warning(f"Reducing cross-validation folds from {cv} to {folds}")

    if scoring is None:
        if len(class_counts) == 2:
            # same positive class as evaluate_model: the greater label
            scoring = make_scorer(f1_score, pos_label=sorted(class_counts.index)[1], zero_division=0)
        else:
            scoring = 'f1_weighted'

    logger.logger.info(
        f"Starting grid search over {len(ParameterGrid(param_grid))} candidates "
        f"with {folds}-fold cross-validation, scoring={scoring}"
    )

    grid = GridSearchCV(estimator, param_grid, cv=folds, scoring=scoring, n_jobs=n_jobs)
    grid.fit(X, y)

    best_score = float(grid.best_score_)
    logger.logger.info(f"Best parameters: {grid.best_params_}, best score: {best_score:.4f}")
    return grid.best_estimator_, grid.best_params_, best_score
