# tests/core/test_codec.py
"""
Тесты потокового кодека JSON-массива и GeoJSON-кодировщика.
"""

from __future__ import annotations

import json
from typing import Any

import pytest

from tracker.common.errors import MalformedInput
from tracker.core.codec import (
    ArrayStreamDecoder,
    DecoderState,
    JsonArrayEncoder,
    LineStringFeatureEncoder,
    iter_array_objects,
)


def _encode(objects: list[dict[str, Any]]) -> str:
    encoder = JsonArrayEncoder()
    return encoder.begin() + "".join(encoder.encode(o) for o in objects) + encoder.end()


def _chunks(text: str, size: int) -> list[str]:
    return [text[i:i + size] for i in range(0, len(text), size)]


def _decode(text: str, size: int, **kwargs: Any) -> list[dict[str, Any]]:
    return list(iter_array_objects(_chunks(text, size), **kwargs))


class TestRoundTrip:
    """Кодирование массивом и обратное потоковое декодирование."""

    @pytest.mark.parametrize("count", [0, 1, 1000])
    def test_round_trip(self, count: int) -> None:
        """Последовательность восстанавливается без потерь."""
        points = [
            {"lat": 52.0 + i * 1e-4, "lon": 5.0 - i * 1e-4, "timestamp": f"2024-05-01T10:00:{i % 60:02d}.000Z"}
            for i in range(count)
        ]

        assert _decode(_encode(points), 4096) == points

    @pytest.mark.parametrize("size", [1, 2, 3, 7, 64])
    def test_chunk_boundaries_do_not_matter(self, size: int) -> None:
        """Разбиение на куски любого размера даёт тот же результат."""
        points = [{"lat": float(i), "lon": -float(i), "alt": i * 1.5} for i in range(20)]

        assert _decode(_encode(points), size) == points

    def test_braces_and_commas_inside_strings(self) -> None:
        """Скобки, запятые и экранированные кавычки в строках не ломают границы объектов."""
        tricky = [
            {"lat": 1.0, "lon": 2.0, "note": "a}{,]["},
            {"lat": 3.0, "lon": 4.0, "note": 'quote \\" and \\\\ slash }'},
            {"lat": 5.0, "lon": 6.0, "nested": {"deep": {"x": "}}"}}},
        ]

        assert _decode(_encode(tricky), 1) == tricky

    def test_whitespace_and_unicode(self) -> None:
        """Пробелы между элементами, BOM и не-ASCII символы допускаются."""
        text = '\ufeff  [\n  {"lat": 1, "lon": 2, "name": "Zürich → Köln"} ,\n\t{"lat": 3, "lon": 4}\n]\n'

        assert _decode(text, 5) == [
            {"lat": 1, "lon": 2, "name": "Zürich → Köln"},
            {"lat": 3, "lon": 4},
        ]


class TestArrayStreamDecoder:
    """Состояния и ошибки декодера."""

    def test_states(self) -> None:
        """Декодер проходит состояния от начала массива до конца."""
        seen: list[dict[str, Any]] = []
        decoder = ArrayStreamDecoder(seen.append)
        assert decoder.state is DecoderState.EXPECT_ARRAY_START

        decoder.feed("[")
        assert decoder.state is DecoderState.BETWEEN_ELEMENTS

        decoder.feed('{"a":')
        assert decoder.state is DecoderState.INSIDE_OBJECT

        decoder.feed('"x')
        assert decoder.state is DecoderState.INSIDE_STRING

        decoder.feed('"}')
        assert decoder.state is DecoderState.BETWEEN_ELEMENTS
        assert seen == [{"a": "x"}]

        decoder.feed("]")
        assert decoder.done
        decoder.close()

    def test_input_after_closing_bracket_is_ignored(self) -> None:
        seen: list[dict[str, Any]] = []
        decoder = ArrayStreamDecoder(seen.append)

        decoder.feed('[{"a":1}] trailing garbage')
        decoder.feed("{{{")
        decoder.close()

        assert decoder.done
        assert seen == [{"a": 1}]

    def test_buffer_holds_only_open_object(self) -> None:
        """После завершения объектов буфер освобождается."""
        decoder = ArrayStreamDecoder(lambda obj: None)
        decoder.feed("[" + ",".join('{"lat":1,"lon":2}' for _ in range(500)) + ",")

        assert decoder.count == 500
        assert decoder.buffered == 0

        decoder.feed('{"lat":1,')
        assert decoder.buffered == len('{"lat":1,')

    @pytest.mark.parametrize("text", ['{"a":1}', "null", "  x["])
    def test_not_an_array(self, text: str) -> None:
        decoder = ArrayStreamDecoder(lambda obj: None)

        with pytest.raises(MalformedInput):
            decoder.feed(text)

    def test_unexpected_element(self) -> None:
        """Элементы-не-объекты отклоняются с позицией."""
        decoder = ArrayStreamDecoder(lambda obj: None)

        with pytest.raises(MalformedInput) as exc_info:
            decoder.feed('[{"a":1}, 2]')

        assert exc_info.value.position == 10

    def test_unparseable_object(self) -> None:
        decoder = ArrayStreamDecoder(lambda obj: None)

        with pytest.raises(MalformedInput):
            decoder.feed("[{lat: 1}]")

    def test_empty_input(self) -> None:
        decoder = ArrayStreamDecoder(lambda obj: None)
        decoder.feed("   ")

        with pytest.raises(MalformedInput):
            decoder.close()

    def test_truncated_object_is_error_by_default(self) -> None:
        """Оборванный последний объект — ошибка."""
        with pytest.raises(MalformedInput):
            _decode('[{"a":1},{"b":', 4)

    def test_missing_closing_bracket_is_error(self) -> None:
        with pytest.raises(MalformedInput):
            _decode('[{"a":1}', 4)

    def test_truncated_tail_can_be_discarded(self) -> None:
        """С allow_truncated оборванный хвост отбрасывается молча."""
        assert _decode('[{"a":1},{"b":"open', 3, allow_truncated=True) == [{"a": 1}]


class TestLineStringFeatureEncoder:
    """Тесты GeoJSON-кодировщика."""

    def _render(self, coords: list[tuple[float, float]]) -> dict[str, Any]:
        encoder = LineStringFeatureEncoder({"source": "routeData.json", "redact": True})
        text = encoder.begin() + "".join(encoder.add(lon, lat) for lon, lat in coords) + encoder.end()
        return json.loads(text)

    @pytest.mark.parametrize("count", [0, 1])
    def test_less_than_two_points_gives_empty_collection(self, count: int) -> None:
        data = self._render([(5.0, 52.0)] * count)

        assert data == {"type": "FeatureCollection", "features": []}

    def test_line_string(self) -> None:
        coords = [(5.0 + i * 0.01, 52.0) for i in range(4)]

        data = self._render(coords)

        assert len(data["features"]) == 1
        feature = data["features"][0]
        assert feature["properties"] == {"source": "routeData.json", "redact": True}
        assert feature["geometry"]["type"] == "LineString"
        assert feature["geometry"]["coordinates"] == [list(c) for c in coords]

    def test_feature_opens_on_second_coordinate(self) -> None:
        encoder = LineStringFeatureEncoder()
        encoder.begin()

        assert encoder.add(1.0, 2.0) == ""
        assert not encoder.started
        assert encoder.add(3.0, 4.0).endswith("[1.0,2.0],[3.0,4.0]")
        assert encoder.started
        assert encoder.add(5.0, 6.0) == ",[5.0,6.0]"


class TestJsonArrayEncoder:
    def test_separators(self) -> None:
        encoder = JsonArrayEncoder()

        assert encoder.begin() == "["
        assert encoder.encode({"a": 1}) == '{"a":1}'
        assert encoder.encode_raw('{"b":2}') == ',{"b":2}'
        assert encoder.end() == "]"
        assert encoder.count == 2
