"""
Composite dataset combining marker, trait and distance data for the same items.
"""

import logging
from typing import List, Optional, Protocol, runtime_checkable

from .distances import DistanceMatrixData
from .exceptions import StructuralError
from .genotypes import FrequencyGenotypeData
from .headers import Header, IdentifiedData, merge_headers
from .phenotypes import PhenotypeData

logger = logging.getLogger(__name__)


@runtime_checkable
class HasHeaders(Protocol):
    def get_size(self) -> int: ...

    def get_header(self, item_id: int) -> Optional[Header]: ...

    def get_headers(self) -> Optional[List[Optional[Header]]]: ...


@runtime_checkable
class HasMarkers(Protocol):
    def get_number_of_markers(self) -> int: ...

    def get_marker_name(self, marker: int) -> Optional[str]: ...

    def get_number_of_alleles(self, marker: int) -> int: ...

    def get_allele_name(self, marker: int, allele: int) -> Optional[str]: ...


@runtime_checkable
class HasFrequencies(HasMarkers, Protocol):
    def get_allele_frequency(self, item_id: int, marker: int, allele: int) -> Optional[float]: ...


@runtime_checkable
class HasDistances(Protocol):
    def get_distance(self, id_x: int, id_y: int) -> float: ...


class CoreDataset(IdentifiedData):
    """
    Up to three co-indexed datasets sharing one ID space.

    All given datasets must have the same size; their headers are merged
    item by item and must be consistent.

    Raises:
        StructuralError: If no dataset is given or sizes differ
        HeaderConflictError: If the datasets disagree on an item's header
    """

    def __init__(self, genotypes: Optional[FrequencyGenotypeData] = None,
                 phenotypes: Optional[PhenotypeData] = None,
                 distances: Optional[DistanceMatrixData] = None,
                 name: str = "Core dataset"):
        for label, data, capability in (('genotypic', genotypes, HasFrequencies),
                                        ('phenotypic', phenotypes, HasHeaders),
                                        ('distances', distances, HasDistances)):
            if data is not None and not (isinstance(data, capability) and isinstance(data, HasHeaders)):
                raise TypeError(f"Unsupported {label} data: {type(data).__name__}")

        constituents = [d for d in (genotypes, phenotypes, distances) if d is not None]
        if not constituents:
            raise StructuralError("At least one type of data (genotypic, phenotypic, distances) should be defined.")

        sizes = [d.get_size() for d in constituents]
        if len(set(sizes)) > 1:
            raise StructuralError(f"Provided datasets have different sizes: {', '.join(map(str, sizes))}.")

        headers = merge_headers(*(d.get_headers() for d in constituents))
        super().__init__(name, sizes[0], headers)

        self._genotypes = genotypes
        self._phenotypes = phenotypes
        self._distances = distances
        logger.debug(f"Combined {len(constituents)} datasets of {sizes[0]} items")

    @property
    def genotypes(self) -> Optional[FrequencyGenotypeData]:
        return self._genotypes

    @property
    def phenotypes(self) -> Optional[PhenotypeData]:
        return self._phenotypes

    @property
    def distances(self) -> Optional[DistanceMatrixData]:
        return self._distances

    def has_genotypes(self) -> bool:
        return self._genotypes is not None

    def has_phenotypes(self) -> bool:
        return self._phenotypes is not None

    def has_distances(self) -> bool:
        return self._distances is not None

    def get_distance(self, id_x: int, id_y: int) -> float:
        if self._distances is None:
            raise StructuralError("No distance data in this dataset.")
        return self._distances.get_distance(id_x, id_y)

    def summary(self) -> List[str]:
        """Human readable description of the constituents."""
        lines = [f"{self.get_size()} items ({'with' if self.has_headers() else 'without'} headers)"]
        if self._genotypes is not None:
            lines.append(f"markers: {self._genotypes.get_number_of_markers()} "
                         f"({self._genotypes.get_total_number_of_alleles()} alleles) "
                         f"from {self._genotypes.dataset_name}")
        if self._phenotypes is not None:
            lines.append(f"traits: {self._phenotypes.get_number_of_features()} "
                         f"from {self._phenotypes.dataset_name}")
        if self._distances is not None:
            lines.append(f"distances: {self._distances.get_size()} x {self._distances.get_size()} "
                         f"from {self._distances.dataset_name}")
        return lines
