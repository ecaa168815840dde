"""
Metadata synthesis: filenames, EXIF-like metadata and copyright records.
"""

from .models import (
    Brand, ImageDescriptor, ProductContext, LicenseType, AspectRatio, CdnPath,
    FilenameSet, FileSizeEstimate, ImageMetadata, CopyrightRecord, SynthesisResult,
)
from .licenses import LICENSE_RULES, LicenseRules, get_license_rules
from .estimation import calculate_aspect_ratio, estimate_file_size, recommend_quality
from .synthesizer import MetadataSynthesizer, extract_keywords, slugify

__all__ = [
    'Brand', 'ImageDescriptor', 'ProductContext', 'LicenseType', 'AspectRatio',
    'CdnPath', 'FilenameSet', 'FileSizeEstimate', 'ImageMetadata',
    'CopyrightRecord', 'SynthesisResult',
    'LICENSE_RULES', 'LicenseRules', 'get_license_rules',
    'calculate_aspect_ratio', 'estimate_file_size', 'recommend_quality',
    'MetadataSynthesizer', 'extract_keywords', 'slugify',
]
