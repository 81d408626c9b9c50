"""tricmap: numeric core for proximity-ligation (TRIC-seq style) RNA maps.

Chimeric reads become binned, ICE-balanced contact matrices and smoothed
long-range profiles with peak calls; feature-to-feature edges are collapsed
into one representative partner per genomic cluster and placed on a symlog axis; a genome-wide view lists every filtered edge of one
primary feature.
"""

from .balancing import ice_balance, ice_normalize
from .collapse import Candidate, collapse_windowed_peaks, default_primary, select_partner_points, select_primary_edges
from .config import FoldMapConfig, GlobalMapConfig, PartnerMapConfig
from .contact_map import ContactMatrix, build_contact_matrix
from .peaks import Peak, find_local_maxima
from .pipeline import fold_map, global_map, partner_map
from .profile import long_range_profile, moving_average
from .records import AnnotatedFeature, FeatureIndex, GenomicInterval, InteractionEvent, WeightedEdge
from .scaling import SymlogScale, symlog
from .window import CoordinateWindow

__all__ = [
    "AnnotatedFeature",
    "Candidate",
    "ContactMatrix",
    "CoordinateWindow",
    "FeatureIndex",
    "FoldMapConfig",
    "GlobalMapConfig",
    "GenomicInterval",
    "InteractionEvent",
    "PartnerMapConfig",
    "Peak",
    "SymlogScale",
    "WeightedEdge",
    "build_contact_matrix",
    "collapse_windowed_peaks",
    "default_primary",
    "find_local_maxima",
    "fold_map",
    "global_map",
    "ice_balance",
    "ice_normalize",
    "long_range_profile",
    "moving_average",
    "partner_map",
    "select_partner_points",
    "select_primary_edges",
    "symlog",
]
