"""
TrialData: tabular input container for missinghe.

TrialData is the "I have a trial dataset" abstraction. It holds named
columns of equal length and knows nothing about models: which columns are
outcomes, which are covariates and how they enter a regression is decided
later by the preparation stages.

Usage:
    from missinghe import TrialData

    data = TrialData.from_dataframe(df)
    data = TrialData.from_file("trial.csv")
    data = TrialData.from_arrays(e=e, c=c, t=t, age=age)

    data.columns        # ('e', 'c', 't', 'age')
    e = data['e']
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from missinghe.core.exceptions import ValidationError
from missinghe.core.validation import check_1d, readonly

if TYPE_CHECKING:
    import pandas as pd


@dataclass(frozen=True)
class TrialData:
    """
    Immutable column store. Domain-agnostic.

    Construct via factory classmethods, not directly. Numeric columns are
    float64 with NaN marking a missing entry; any other column is kept as
    an object array with None marking a missing entry. All stored arrays
    are read-only.
    """
    _data: dict[str, NDArray]
    _order: tuple[str, ...]
    _n: int
    _metadata: dict[str, Any] = field(default_factory=dict)

    # === Column Access ===

    def keys(self) -> frozenset[str]:
        """Return the names of all available columns."""
        return frozenset(self._order)

    @property
    def columns(self) -> tuple[str, ...]:
        """Column names in their original order."""
        return self._order

    def __getitem__(self, key: str) -> NDArray:
        """
        Access a named column.

        Raises:
            KeyError: If key not found, with the available names listed
        """
        if key not in self._data:
            raise KeyError(
                f"TrialData has no column '{key}'. Available: {list(self._order)}"
            )
        return self._data[key]

    def __contains__(self, key: str) -> bool:
        return key in self._data

    # === Properties ===

    @property
    def n_observations(self) -> int:
        """Number of subjects (rows)."""
        return self._n

    @property
    def metadata(self) -> dict[str, Any]:
        """Source metadata (origin, file path)."""
        return self._metadata.copy()

    def is_numeric(self, key: str) -> bool:
        """Whether a column is stored as a numeric array."""
        return np.issubdtype(self[key].dtype, np.number)

    # === Factory Methods ===

    @classmethod
    def from_arrays(cls, **columns: Any) -> TrialData:
        """Construct from named 1D array-likes of equal length."""
        if not columns:
            raise ValidationError("TrialData needs at least one column")

        storage: dict[str, NDArray] = {}
        for name, values in columns.items():
            storage[name] = _as_column(np.asarray(values), name)

        return cls._build(storage, tuple(columns), {'source': 'arrays'})

    @classmethod
    def from_dataframe(
        cls,
        df: 'pd.DataFrame',
        *,
        source_path: str | None = None,
    ) -> TrialData:
        """Construct from a pandas DataFrame."""
        import pandas as pd

        storage: dict[str, NDArray] = {}
        order = []
        for col in df.columns:
            name = str(col)
            series = df[col]
            is_bool = pd.api.types.is_bool_dtype(series.dtype)
            if pd.api.types.is_numeric_dtype(series.dtype) and not is_bool:
                values = series.to_numpy(dtype=np.float64, na_value=np.nan)
            else:
                # pd.NA in nullable columns becomes None
                values = series.astype(object).where(series.notna(), None).to_numpy()
            storage[name] = _as_column(values, name)
            order.append(name)

        metadata: dict[str, Any] = {'source': 'dataframe'}
        if source_path:
            metadata['source_path'] = source_path
        return cls._build(storage, tuple(order), metadata)

    @classmethod
    def from_file(cls, path: str | Path) -> TrialData:
        """Construct from a delimited text file (CSV, TSV)."""
        path = Path(path)
        suffix = path.suffix.lower()

        if suffix == '.csv':
            import pandas as pd
            df = pd.read_csv(path)
        elif suffix == '.tsv':
            import pandas as pd
            df = pd.read_csv(path, sep='\t')
        else:
            raise ValidationError(f"Unknown file format: {suffix}")
        return cls.from_dataframe(df, source_path=str(path))

    @classmethod
    def build(cls, data: Any = None, **columns: Any) -> TrialData:
        """
        Convenience factory that dispatches to the appropriate from_* method.

        Examples:
            TrialData.build(df)              # from_dataframe
            TrialData.build("trial.csv")     # from_file
            TrialData.build(e=e, c=c, t=t)   # from_arrays
        """
        if isinstance(data, TrialData):
            return data
        if isinstance(data, (str, Path)):
            return cls.from_file(data)
        if data is not None and hasattr(data, 'columns') and hasattr(data, 'iloc'):
            return cls.from_dataframe(data)
        if data is not None:
            raise ValidationError(
                f"data must be a DataFrame, a file path or a TrialData, "
                f"got {type(data).__name__}"
            )
        return cls.from_arrays(**columns)

    @classmethod
    def _build(
        cls,
        storage: dict[str, NDArray],
        order: tuple[str, ...],
        metadata: dict[str, Any],
    ) -> TrialData:
        """Internal builder with validation."""
        lengths = {name: arr.shape[0] for name, arr in storage.items()}
        if len(set(lengths.values())) > 1:
            details = ", ".join(f"{k}={v}" for k, v in lengths.items())
            raise ValidationError(f"Inconsistent column lengths: {details}")

        n = next(iter(lengths.values())) if lengths else 0
        if n == 0:
            raise ValidationError("TrialData needs at least one row")

        metadata = dict(metadata, n_observations=n, columns=list(order))
        return cls(_data=storage, _order=order, _n=n, _metadata=metadata)

    def __repr__(self) -> str:
        return f"TrialData(n={self._n}, columns={list(self._order)})"


def _as_column(values: NDArray, name: str) -> NDArray:
    """Normalise one column: float64 for numbers, object otherwise."""
    check_1d(values, name)
    if values.dtype != np.bool_ and np.issubdtype(values.dtype, np.number):
        return readonly(values, dtype=np.float64)
    return readonly(values, dtype=object)
