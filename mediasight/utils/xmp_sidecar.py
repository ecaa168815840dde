"""
XMP sidecar file support utilities.

Writes synthesized keywords, titles, captions and copyright terms to XMP
sidecar files so asset managers and photo applications pick them up.
"""

import os
import logging
from typing import Dict, Any, List
import xml.etree.ElementTree as ET
from xml.dom import minidom

logger = logging.getLogger(__name__)

# XMP namespaces
XMP_NAMESPACES = {
    'x': 'adobe:ns:meta/',
    'rdf': 'http://www.w3.org/1999/02/22-rdf-syntax-ns#',
    'dc': 'http://purl.org/dc/elements/1.1/',
    'xmpRights': 'http://ns.adobe.com/xap/1.0/rights/',
    'photoshop': 'http://ns.adobe.com/photoshop/1.0/',
}

for _prefix, _uri in XMP_NAMESPACES.items():
    ET.register_namespace(_prefix, _uri)

RDF = '{%s}' % XMP_NAMESPACES['rdf']
DC = '{%s}' % XMP_NAMESPACES['dc']
RIGHTS = '{%s}' % XMP_NAMESPACES['xmpRights']
PHOTOSHOP = '{%s}' % XMP_NAMESPACES['photoshop']
XML_LANG = '{http://www.w3.org/XML/1998/namespace}lang'


class XMPSidecar:
    """Handles XMP sidecar file operations."""

    def __init__(self, image_path: str):
        """Initialize with the path to the image file (which need not exist)."""
        self.image_path = str(image_path)
        self.sidecar_path = self._get_sidecar_path()

    def _get_sidecar_path(self) -> str:
        base_path = os.path.splitext(self.image_path)[0]
        return f"{base_path}.xmp"

    def exists(self) -> bool:
        return os.path.exists(self.sidecar_path)

    def read(self) -> Dict[str, Any]:
        """Read metadata from the XMP sidecar file, or {} when unreadable."""
        if not self.exists():
            return {}

        try:
            root = ET.parse(self.sidecar_path).getroot()
        except (OSError, ET.ParseError) as e:
            logger.error(f"Failed to read XMP sidecar {self.sidecar_path}: {e}")
            return {}

        metadata = {}

        keywords = self._extract_keywords(root)
        if keywords:
            metadata['keywords'] = keywords

        dc_data = self._extract_dublin_core(root)
        if dc_data:
            metadata['dc'] = dc_data

        rights_data = self._extract_rights(root)
        if rights_data:
            metadata['rights'] = rights_data

        description = root.find(f'.//{RDF}Description')
        if description is not None:
            credit = description.find(f'{PHOTOSHOP}Credit')
            if credit is not None and credit.text:
                metadata['credit'] = credit.text

        return metadata

    def write(self, metadata: Dict[str, Any]) -> bool:
        """
        Write metadata to the XMP sidecar file, merging into an existing one.

        Args:
            metadata: Dict with optional 'keywords', 'dc', 'rights' and 'credit'

        Returns:
            True if the file was written
        """
        root = None
        if self.exists():
            try:
                root = ET.parse(self.sidecar_path).getroot()
            except ET.ParseError as e:
                logger.warning(f"Replacing unreadable XMP sidecar {self.sidecar_path}: {e}")
        if root is None:
            root = self._create_xmp_structure()

        rdf_root = root.find(f'.//{RDF}RDF')
        if rdf_root is None:
            rdf_root = ET.SubElement(root, f'{RDF}RDF')

        description = rdf_root.find(f'.//{RDF}Description')
        if description is None:
            description = ET.SubElement(rdf_root, f'{RDF}Description')
            description.set(f'{RDF}about', '')

        if 'keywords' in metadata:
            self._write_keywords(description, metadata['keywords'])

        if 'dc' in metadata:
            self._write_dublin_core(description, metadata['dc'])

        if 'rights' in metadata:
            self._write_rights(description, metadata['rights'])

        if metadata.get('credit'):
            self._replace_text(description, f'{PHOTOSHOP}Credit', metadata['credit'])

        try:
            xml_str = self._prettify_xml(root)
            with open(self.sidecar_path, 'w', encoding='utf-8') as f:
                f.write(xml_str)
        except OSError as e:
            logger.error(f"Failed to write XMP sidecar {self.sidecar_path}: {e}")
            return False

        logger.debug(f"Wrote XMP sidecar {self.sidecar_path}")
        return True

    def _create_xmp_structure(self) -> ET.Element:
        xmp_root = ET.Element('{%s}xmpmeta' % XMP_NAMESPACES['x'])
        rdf_root = ET.SubElement(xmp_root, f'{RDF}RDF')
        description = ET.SubElement(rdf_root, f'{RDF}Description')
        description.set(f'{RDF}about', '')
        return xmp_root

    def _extract_keywords(self, root: ET.Element) -> List[str]:
        keywords = []

        subject_elem = root.find(f'.//{DC}subject')
        if subject_elem is not None:
            bag_elem = subject_elem.find(f'.//{RDF}Bag')
            if bag_elem is not None:
                for li in bag_elem.findall(f'.//{RDF}li'):
                    if li.text:
                        keywords.append(li.text)

        return keywords

    def _extract_dublin_core(self, root: ET.Element) -> Dict[str, Any]:
        dc_data = {}

        for field, container in (('title', 'Alt'), ('description', 'Alt'),
                                 ('creator', 'Seq'), ('rights', 'Alt')):
            elem = root.find(f'.//{DC}{field}')
            if elem is None:
                continue
            holder = elem.find(f'.//{RDF}{container}')
            if holder is not None:
                li = holder.find(f'.//{RDF}li')
                if li is not None and li.text:
                    key = 'caption' if field == 'description' else field
                    dc_data[key] = li.text

        return dc_data

    def _extract_rights(self, root: ET.Element) -> Dict[str, Any]:
        rights_data = {}

        description = root.find(f'.//{RDF}Description')
        if description is None:
            return rights_data

        marked = description.find(f'{RIGHTS}Marked')
        if marked is not None and marked.text:
            rights_data['marked'] = marked.text.strip().lower() == 'true'

        statement = description.find(f'{RIGHTS}WebStatement')
        if statement is not None and statement.text:
            rights_data['web_statement'] = statement.text

        usage_elem = description.find(f'{RIGHTS}UsageTerms')
        if usage_elem is not None:
            alt = usage_elem.find(f'.//{RDF}Alt')
            li = alt.find(f'.//{RDF}li') if alt is not None else None
            if li is not None and li.text:
                rights_data['usage_terms'] = li.text

        return rights_data

    def _write_keywords(self, description: ET.Element, keywords: List[str]):
        for elem in description.findall(f'{DC}subject'):
            description.remove(elem)

        if not keywords:
            return

        subject = ET.SubElement(description, f'{DC}subject')
        bag = ET.SubElement(subject, f'{RDF}Bag')

        for keyword in keywords:
            li = ET.SubElement(bag, f'{RDF}li')
            li.text = keyword

    def _write_dublin_core(self, description: ET.Element, dc_data: Dict[str, Any]):
        if dc_data.get('title'):
            self._replace_alt(description, f'{DC}title', dc_data['title'])

        if dc_data.get('caption'):
            self._replace_alt(description, f'{DC}description', dc_data['caption'])

        if dc_data.get('rights'):
            self._replace_alt(description, f'{DC}rights', dc_data['rights'])

        if dc_data.get('creator'):
            for elem in description.findall(f'{DC}creator'):
                description.remove(elem)

            creator = ET.SubElement(description, f'{DC}creator')
            seq = ET.SubElement(creator, f'{RDF}Seq')
            li = ET.SubElement(seq, f'{RDF}li')
            li.text = dc_data['creator']

    def _write_rights(self, description: ET.Element, rights_data: Dict[str, Any]):
        if 'marked' in rights_data:
            self._replace_text(description, f'{RIGHTS}Marked',
                               'True' if rights_data['marked'] else 'False')

        if rights_data.get('web_statement'):
            self._replace_text(description, f'{RIGHTS}WebStatement', rights_data['web_statement'])

        if rights_data.get('usage_terms'):
            self._replace_alt(description, f'{RIGHTS}UsageTerms', rights_data['usage_terms'])

    @staticmethod
    def _replace_text(description: ET.Element, tag: str, text: str):
        for elem in description.findall(tag):
            description.remove(elem)
        elem = ET.SubElement(description, tag)
        elem.text = str(text)

    @staticmethod
    def _replace_alt(description: ET.Element, tag: str, text: str):
        for elem in description.findall(tag):
            description.remove(elem)
        container = ET.SubElement(description, tag)
        alt = ET.SubElement(container, f'{RDF}Alt')
        li = ET.SubElement(alt, f'{RDF}li')
        li.set(XML_LANG, 'x-default')
        li.text = str(text)

    def _prettify_xml(self, elem: ET.Element) -> str:
        """Return a pretty-printed XML string wrapped in an XMP packet."""
        rough_string = ET.tostring(elem, encoding='unicode')
        reparsed = minidom.parseString(rough_string)

        xmp_header = '<?xpacket begin="﻿" id="W5M0MpCehiHzreSzNTczkc9d"?>\n'
        xmp_footer = '\n<?xpacket end="w"?>'

        pretty_xml = reparsed.documentElement.toprettyxml(indent='  ')
        lines = [line for line in pretty_xml.split('\n') if line.strip()]

        return xmp_header + '\n'.join(lines) + xmp_footer


def metadata_to_xmp(result) -> Dict[str, Any]:
    """
    Map a SynthesisResult onto the dict accepted by XMPSidecar.write().

    Args:
        result: SynthesisResult from MetadataSynthesizer.synthesize()
    """
    meta = result.metadata
    copyright_record = result.copyright
    terms = copyright_record.license_name
    if copyright_record.restrictions:
        terms = f"{terms}. {'; '.join(copyright_record.restrictions)}"

    return {
        'keywords': list(meta.content.keywords),
        'dc': {
            'title': meta.usage.title,
            'caption': meta.usage.alt_text,
            'creator': meta.creator.name,
            'rights': copyright_record.statement,
        },
        'rights': {
            'marked': copyright_record.license_type.value != 'cc0',
            'web_statement': copyright_record.license_url,
            'usage_terms': terms,
        },
        'credit': copyright_record.attribution_text,
    }
