"""End-to-end tests: scan -> materialize -> splice over real image files."""

import re

import pytest

from markdown_image_inliner.image_processor import ImageProcessor
from markdown_image_inliner.markdown_processor import MarkdownProcessor, process_markdown
from markdown_image_inliner.materializer import Materializer
from markdown_image_inliner.reference_scanner import scan

from conftest import SVG_MARKUP, FakeHttpClient, decode_data_urls, image_size, make_oversized_png

REMOTE_JPG = "https://images.example.com/test.jpg"
REMOTE_SVG = "https://images.example.com/test.svg"
REMOTE_PNG = "https://images.example.com/test.png"


@pytest.fixture
def http_client(jpeg_bytes, png_bytes):
    return FakeHttpClient({
        REMOTE_JPG: (jpeg_bytes, {"Content-Type": "image/jpeg"}),
        REMOTE_PNG: (png_bytes, {"Content-Type": "image/png"}),
        REMOTE_SVG: (SVG_MARKUP.encode(), {"Content-Type": "image/svg+xml"}),
    })


def _run(doc, image_dir, http_client, **kwargs):
    return process_markdown(doc, str(image_dir), http_client, **kwargs)


class TestEmbedding:

    @pytest.mark.parametrize("doc, mime, count", [
        ("![test image](test.jpg)", "image/jpeg", 1),
        ("![test image](test.jpg){: width=100}", "image/jpeg", 1),
        ("![test image](test.jpg){: height=100}", "image/jpeg", 1),
        ("![test image](test.jpg){: width=100 height=50}", "image/jpeg", 1),
        (f"![remote image]({REMOTE_JPG})", "image/jpeg", 1),
        ('<img src="test.jpg" alt="html test">', "image/jpeg", 1),
        (f'<img src="{REMOTE_JPG}" alt="html remote test">', "image/jpeg", 1),
        (f"![local](test.jpg) ![remote]({REMOTE_JPG})", "image/jpeg", 2),
        ("![not found](nonexistent.jpg)", "image/jpeg", 0),
        ("![test svg](test.svg)", "image/svg+xml", 1),
        (f"![remote svg]({REMOTE_SVG})", "image/svg+xml", 1),
        ("![test png](test.png)", "image/png", 1),
        (f"![remote png]({REMOTE_PNG})", "image/png", 1),
        ("![gif](anim.gif)", "image/gif", 1),
        ("![ppm](art.ppm)", "image/jpeg", 1),
    ])
    def test_embedded_count(self, doc, mime, count, image_dir, http_client):
        output, stats = _run(doc, image_dir, http_client)
        assert output.count(f"data:{mime};base64,") == count
        assert stats.images_embedded == count

    def test_partial_failure(self, image_dir, http_client):
        output, stats = _run("![a](test.jpg) ![b](missing.jpg)", image_dir, http_client)
        assert output.count("data:image/jpeg;base64,") == 1
        assert "![b](missing.jpg)" in output
        assert stats.references_found == 2
        assert stats.images_embedded == 1
        assert stats.failures[0][0] == "missing.jpg"
        assert stats.failures[0][1].startswith("NotFound")

    def test_html_normalized_to_markdown(self, image_dir, http_client):
        output, _ = _run('<img src="test.jpg" alt="t" width="50" height="50">', image_dir, http_client)
        assert re.fullmatch(r"!\[t\]\(data:image/jpeg;base64,[A-Za-z0-9+/=]+\)", output)
        assert "<img" not in output
        assert "width" not in output

    def test_size_annotation_is_dropped(self, image_dir, http_client):
        output, _ = _run("![t](test.jpg){: width=10 height=10} after", image_dir, http_client)
        assert output.startswith("![t](data:image/jpeg;base64,")
        assert output.endswith(") after")
        assert "{:" not in output

    def test_dimension_suffix_form(self, image_dir, http_client):
        output, _ = _run("![w](wide.jpg =40x)", image_dir, http_client)
        [(mime, data)] = decode_data_urls(output)
        assert mime == "image/jpeg"
        assert image_size(data) == (40, 20)

    def test_svg_width_patch(self, image_dir, http_client):
        output, _ = _run("![test svg](test.svg){: width=200}", image_dir, http_client)
        [(mime, data)] = decode_data_urls(output)
        assert mime == "image/svg+xml"
        assert 'width="200"' in data.decode()
        assert 'height="100"' in data.decode()

    def test_html_svg_width_patch(self, image_dir, http_client):
        output, _ = _run('<img src="test.svg" alt="html test" width="300">', image_dir, http_client)
        [(_, data)] = decode_data_urls(output)
        assert 'width="300"' in data.decode()

    def test_default_cap_applies(self, image_dir, http_client):
        output, _ = _run("![big](big.png)", image_dir, http_client)
        [(_, data)] = decode_data_urls(output)
        assert image_size(data) == (200, 100)

    def test_custom_cap(self, image_dir, http_client):
        output, _ = _run("![big](big.png)", image_dir, http_client,
                         image_processor=ImageProcessor(max_dimension=400))
        [(_, data)] = decode_data_urls(output)
        assert image_size(data) == (400, 200)

    def test_oversized_image_is_a_per_reference_failure(self, image_dir, http_client):
        (image_dir / "huge.png").write_bytes(make_oversized_png())
        doc = "![a](huge.png) ![b](missing.png) ![c](test.png)"
        output, stats = _run(doc, image_dir, http_client)
        assert output.startswith("![a](huge.png) ![b](missing.png) ![c](data:image/png;base64,")
        assert [locator for locator, _ in stats.failures] == ["huge.png", "missing.png"]
        assert stats.failures[0][1].startswith("UnsupportedFormat")

    def test_remote_failure_keeps_original(self, image_dir, http_client):
        doc = "![gone](https://images.example.com/gone.png) end"
        output, stats = _run(doc, image_dir, http_client)
        assert output == doc
        assert stats.failures[0][1].startswith("FetchError")


class TestIdempotence:

    def test_second_pass_finds_nothing(self, image_dir, http_client):
        doc = '# Title\n![a](test.jpg)\n<img src="test.png" alt="b">\n![c](test.svg){: width=5}\n'
        first, stats = _run(doc, image_dir, http_client)
        assert stats.images_embedded == 3
        assert scan(first) == []
        second, second_stats = _run(first, image_dir, http_client)
        assert second == first
        assert second_stats.references_found == 0


class TestStats:

    def test_sizes(self, image_dir, http_client, jpeg_bytes):
        doc = "x ![a](test.jpg) y"
        output, stats = _run(doc, image_dir, http_client)
        assert stats.input_size == len(doc)
        assert stats.output_size == len(output)
        assert stats.total_image_size == len(jpeg_bytes)
        assert stats.total_payload_size > 0
        assert stats.images_failed == 0

    def test_stats_reset_between_documents(self, image_dir, http_client):
        processor = MarkdownProcessor(Materializer(str(image_dir), http_client))
        processor.process("![a](test.jpg) ![b](missing.png)")
        processor.process("no images")
        assert processor.stats.references_found == 0
        assert processor.stats.failures == []


class TestParallel:

    def test_parallel_matches_sequential(self, image_dir, http_client):
        doc = "\n".join([
            "![a](test.jpg)",
            f"![r]({REMOTE_PNG})",
            "![m](missing.jpg)",
            '<img src="test.svg" alt="s" height="20">',
            "![b](big.png){: width=30}",
            "![w](wide.jpg =x10)",
        ])
        sequential, _ = _run(doc, image_dir, http_client, max_workers=1)
        parallel, stats = _run(doc, image_dir, http_client, max_workers=4)
        assert parallel == sequential
        assert stats.images_embedded == 5
        assert [locator for locator, _ in stats.failures] == ["missing.jpg"]
