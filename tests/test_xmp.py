"""
Tests for XMP sidecar writing and reading.
"""

from mediasight.utils.xmp_sidecar import XMPSidecar, metadata_to_xmp


class TestXMPSidecar:
    """Test sidecar round trips."""

    def test_sidecar_path(self, tmp_path):
        sidecar = XMPSidecar(str(tmp_path / "123-front-2400x3000.webp"))
        assert sidecar.sidecar_path == str(tmp_path / "123-front-2400x3000.xmp")
        assert not sidecar.exists()
        assert sidecar.read() == {}

    def test_write_and_read(self, tmp_path):
        sidecar = XMPSidecar(str(tmp_path / "image.webp"))
        assert sidecar.write({
            'keywords': ['navy', 'coat'],
            'dc': {'title': 'Navy Blue Coat', 'caption': 'Front view', 'creator': 'Studio',
                   'rights': '© 2024 Storefront Co.'},
            'rights': {'marked': True, 'web_statement': 'https://example.com/license',
                       'usage_terms': 'All rights reserved'},
            'credit': 'Photo by Studio',
        })

        data = sidecar.read()
        assert data['keywords'] == ['navy', 'coat']
        assert data['dc'] == {'title': 'Navy Blue Coat', 'caption': 'Front view', 'creator': 'Studio',
                              'rights': '© 2024 Storefront Co.'}
        assert data['rights'] == {'marked': True, 'web_statement': 'https://example.com/license',
                                  'usage_terms': 'All rights reserved'}
        assert data['credit'] == 'Photo by Studio'

    def test_rewrite_replaces_keywords(self, tmp_path):
        sidecar = XMPSidecar(str(tmp_path / "image.webp"))
        sidecar.write({'keywords': ['old'], 'credit': 'Studio'})
        sidecar.write({'keywords': ['new', 'words']})
        data = sidecar.read()
        assert data['keywords'] == ['new', 'words']
        assert data['credit'] == 'Studio'

    def test_packet_wrapper(self, tmp_path):
        sidecar = XMPSidecar(str(tmp_path / "image.webp"))
        sidecar.write({'keywords': ['a']})
        with open(sidecar.sidecar_path, encoding='utf-8') as f:
            text = f.read()
        assert text.startswith('<?xpacket begin=')
        assert text.rstrip().endswith('<?xpacket end="w"?>')

    def test_unreadable_sidecar(self, tmp_path):
        (tmp_path / "image.xmp").write_text("<not xml")
        assert XMPSidecar(str(tmp_path / "image.webp")).read() == {}

    def test_metadata_to_xmp(self, synthesizer, descriptor, product, tmp_path):
        result = synthesizer.synthesize(descriptor, product)
        payload = metadata_to_xmp(result)
        assert payload['keywords'][:3] == ['navy', 'blue', 'coat']
        assert payload['rights']['marked'] is True
        assert payload['rights']['web_statement'] == "https://creativecommons.org/licenses/by/4.0/"
        assert payload['rights']['usage_terms'] == "CC BY - Attribution Required. Must provide attribution"

        sidecar = XMPSidecar(str(tmp_path / result.filenames.id_based))
        assert sidecar.write(payload)
        assert sidecar.read()['dc']['creator'] == "Storefront Studio"

    def test_cc0_not_marked(self, synthesizer, descriptor):
        result = synthesizer.synthesize(descriptor, {"productName": "Lamp", "licenseType": "cc0"})
        assert metadata_to_xmp(result)['rights']['marked'] is False
