"""
License lookup table.

Each license type maps to one immutable LicenseRules record; copyright
records are always derived from this table and never edited afterwards.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple, Union

from .models import LicenseType
from ..errors import UnknownLicenseError


@dataclass(frozen=True)
class LicenseRules:
    name: str
    url: Optional[str]
    restrictions: Tuple[str, ...]
    permissions: Tuple[str, ...]
    commercial: bool
    modify: bool
    distribute: bool
    attribution: bool
    watermark: bool
    all_rights_reserved: bool = False


LICENSE_RULES: Mapping[LicenseType, LicenseRules] = MappingProxyType({
    LicenseType.PROPRIETARY: LicenseRules(
        name="Proprietary - All Rights Reserved",
        url=None,
        restrictions=("Commercial use prohibited", "Modification prohibited",
                      "Distribution prohibited"),
        permissions=(),
        commercial=False, modify=False, distribute=False,
        attribution=True, watermark=True, all_rights_reserved=True,
    ),
    LicenseType.CC0: LicenseRules(
        name="CC0 - Public Domain",
        url="https://creativecommons.org/publicdomain/zero/1.0/",
        restrictions=(),
        permissions=("Commercial use", "Modification", "Distribution"),
        commercial=True, modify=True, distribute=True,
        attribution=False, watermark=False,
    ),
    LicenseType.CC_BY: LicenseRules(
        name="CC BY - Attribution Required",
        url="https://creativecommons.org/licenses/by/4.0/",
        restrictions=("Must provide attribution",),
        permissions=("Commercial use", "Modification", "Distribution"),
        commercial=True, modify=True, distribute=True,
        attribution=True, watermark=False,
    ),
    LicenseType.CC_BY_SA: LicenseRules(
        name="CC BY-SA - Attribution + Share Alike",
        url="https://creativecommons.org/licenses/by-sa/4.0/",
        restrictions=("Must provide attribution", "Derivatives must use same license"),
        permissions=("Commercial use", "Modification with same license", "Distribution"),
        commercial=True, modify=True, distribute=True,
        attribution=True, watermark=False,
    ),
    LicenseType.CC_BY_NC: LicenseRules(
        name="CC BY-NC - Non-Commercial",
        url="https://creativecommons.org/licenses/by-nc/4.0/",
        restrictions=("Non-commercial use only", "Must provide attribution"),
        permissions=("Modification", "Distribution"),
        commercial=False, modify=True, distribute=True,
        attribution=True, watermark=False,
    ),
    LicenseType.COMMERCIAL: LicenseRules(
        name="Commercial License",
        url=None,
        restrictions=("Commercial use allowed",),
        permissions=("Commercial use", "Modification", "Distribution"),
        commercial=True, modify=True, distribute=True,
        attribution=True, watermark=False, all_rights_reserved=True,
    ),
})


def get_license_rules(license_type: Union[str, LicenseType],
                      table: Mapping[LicenseType, LicenseRules] = LICENSE_RULES) -> LicenseRules:
    """
    Look up the rules for a license.

    Args:
        license_type: LicenseType or its string key (e.g. 'cc-by')
        table: Lookup table to use; defaults to LICENSE_RULES

    Returns:
        LicenseRules for the license

    Raises:
        UnknownLicenseError: If the key is outside the closed license set or
            missing from the supplied table
    """
    parsed = LicenseType.parse(license_type)
    try:
        return table[parsed]
    except KeyError:
        raise UnknownLicenseError(parsed.value) from None
