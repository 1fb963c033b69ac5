"""Tests for metadata sources, using httpx mock transports."""

from collections.abc import Callable

import httpx
import pytest

from rateit.anything import create_item
from rateit.config import Settings
from rateit.context import AppContext
from rateit.errors import ConfigurationError, NotFoundError, TransientError
from rateit.metadata.base import get_year
from rateit.metadata.google_books import GoogleBooksSource
from rateit.metadata.itunes import ITunesMusicSource, artwork_url
from rateit.metadata.rawg import RAWGSource
from rateit.metadata.resolver import MetadataResolver
from rateit.metadata.tmdb import TMDBMovieSource, TMDBSeriesSource
from rateit.models import ContentKey, ContentType


def make_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def json_client(payload: dict, seen: list[httpx.Request] | None = None) -> httpx.Client:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(200, json=payload)

    return make_client(handler)


class TestErrorMapping:
    def test_404_is_not_found(self) -> None:
        source = TMDBMovieSource("key", client=make_client(lambda r: httpx.Response(404)))
        with pytest.raises(NotFoundError):
            source.get("1")

    def test_server_error_is_transient(self) -> None:
        source = TMDBMovieSource("key", client=make_client(lambda r: httpx.Response(503)))
        with pytest.raises(TransientError):
            source.search("alien")

    def test_transport_error_is_transient(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        source = RAWGSource("key", client=make_client(handler))
        with pytest.raises(TransientError):
            source.get("1")

    def test_invalid_json_is_transient(self) -> None:
        source = GoogleBooksSource(client=make_client(lambda r: httpx.Response(200, text="<html>")))
        with pytest.raises(TransientError):
            source.search("dune")

    def test_missing_key(self) -> None:
        calls: list[httpx.Request] = []
        source = RAWGSource(None, client=json_client({}, calls))
        with pytest.raises(ConfigurationError):
            source.search("zelda")
        assert calls == []


class TestTMDB:
    def test_search_ranks_by_popularity(self) -> None:
        seen: list[httpx.Request] = []
        payload = {
            "results": [
                {"id": 1, "title": "Obscure", "popularity": 0.2},
                {"id": 2, "title": "Alien", "popularity": 40.0, "release_date": "1979-05-25", "poster_path": "/a.jpg"},
                {"id": 3, "title": "Aliens", "popularity": 30.0},
            ]
        }
        results = TMDBMovieSource("secret", client=json_client(payload, seen)).search("alien")

        assert [c.id for c in results] == ["2", "3"]
        assert results[0].year == "1979"
        assert results[0].image_url == "https://image.tmdb.org/t/p/w500/a.jpg"
        assert seen[0].url.params["api_key"] == "secret"
        assert seen[0].url.params["query"] == "alien"

    def test_get_movie_with_director(self) -> None:
        payload = {
            "id": 603,
            "title": "The Matrix",
            "release_date": "1999-03-30",
            "genres": [{"name": "Action"}],
            "credits": {"crew": [{"job": "Producer", "name": "Joel"}, {"job": "Director", "name": "Lana"}]},
        }
        content = TMDBMovieSource("k", client=json_client(payload)).get("603")
        assert content.creator == "Lana"
        assert content.genres == ["Action"]

    def test_get_series(self) -> None:
        payload = {"id": 1399, "name": "Thrones", "created_by": [{"name": "D"}, {"name": "B"}], "number_of_seasons": 8}
        content = TMDBSeriesSource("k", client=json_client(payload)).get("1399")
        assert content.creator == "D, B"
        assert content.metadata["seasons"] == 8


class TestGoogleBooks:
    def test_search_without_key(self) -> None:
        seen: list[httpx.Request] = []
        payload = {
            "items": [
                {
                    "id": "abc",
                    "volumeInfo": {
                        "title": "Dune",
                        "authors": ["Frank Herbert", "Someone Else"],
                        "publishedDate": "1965",
                        "imageLinks": {"thumbnail": "http://books.example/dune.jpg"},
                    },
                }
            ]
        }
        results = GoogleBooksSource(client=json_client(payload, seen)).search("dune")
        assert results[0].creator == "Frank Herbert"
        assert results[0].image_url == "https://books.example/dune.jpg"
        assert "key" not in seen[0].url.params

    def test_no_items(self) -> None:
        assert GoogleBooksSource(client=json_client({"totalItems": 0})).search("zzz") == []


class TestITunes:
    def test_album_tracks_sorted(self) -> None:
        payload = {
            "results": [
                {"wrapperType": "collection", "collectionId": 9},
                {"wrapperType": "track", "kind": "song", "trackId": 3, "trackName": "C", "trackNumber": 1, "discNumber": 2},
                {"wrapperType": "track", "kind": "song", "trackId": 2, "trackName": "B", "trackNumber": 2, "discNumber": 1},
                {"wrapperType": "track", "kind": "song", "trackId": 1, "trackName": "A", "trackNumber": 1, "discNumber": 1},
                {"wrapperType": "track", "kind": "music-video", "trackId": 4, "trackName": "V", "trackNumber": 5},
            ]
        }
        tracks = ITunesMusicSource(client=json_client(payload)).album_tracks("9")
        assert [t.track_id for t in tracks] == ["1", "2", "3"]

    def test_get_album(self) -> None:
        payload = {
            "results": [
                {
                    "wrapperType": "collection",
                    "collectionId": 9,
                    "collectionName": "Abbey Road",
                    "artworkUrl100": "https://x/100x100bb.jpg",
                }
            ]
        }
        content = ITunesMusicSource(client=json_client(payload)).get("9")
        assert content.is_album
        assert content.image_url == "https://x/600x600bb.jpg"

    def test_empty_lookup_is_not_found(self) -> None:
        source = ITunesMusicSource(client=json_client({"resultCount": 0, "results": []}))
        with pytest.raises(NotFoundError):
            source.get("0")

    def test_artwork_url(self) -> None:
        assert artwork_url(None) is None
        assert artwork_url("a/100x100bb.jpg", "b/600.jpg") == "b/600.jpg"


class TestResolver:
    def test_routes_by_type(self, app: AppContext) -> None:
        seen: list[httpx.Request] = []
        resolver = MetadataResolver(app, Settings(rawg_api_key="k"), client=json_client({"results": []}, seen))
        assert resolver.search(ContentType.GAME, "zelda") == []
        assert seen[0].url.host == "api.rawg.io"
        assert resolver.source_for(ContentType.GAME) is resolver.source_for(ContentType.GAME)

    def test_anything_items_are_local(self, app: AppContext) -> None:
        item = create_item(app, "Office chairs")
        resolver = MetadataResolver(app, client=make_client(lambda r: httpx.Response(500)))
        assert resolver.get(ContentKey(ContentType.ANYTHING, item.id)).title == "Office chairs"
        assert [c.id for c in resolver.search(ContentType.ANYTHING, "chairs")] == [item.id]

    def test_sources_share_one_client(self, app: AppContext) -> None:
        resolver = MetadataResolver(app, Settings())
        try:
            assert resolver.source_for(ContentType.MOVIE).client is resolver.client
            assert resolver.source_for(ContentType.MUSIC).client is resolver.client
            assert resolver.source_for(ContentType.BOOK).client is resolver.source_for(ContentType.PODCAST).client
        finally:
            resolver.close()
        assert resolver.client.is_closed

    def test_injected_client_stays_open(self, app: AppContext) -> None:
        client = json_client({"results": []})
        resolver = MetadataResolver(app, Settings(tmdb_api_key="k"), client=client)
        resolver.search(ContentType.MOVIE, "alien")
        resolver.search(ContentType.MUSIC, "abbey road")

        resolver.close()
        assert client.is_closed is False
        client.close()

    def test_search_tracks(self, app: AppContext) -> None:
        seen: list[httpx.Request] = []
        payload = {
            "results": [
                {"wrapperType": "track", "trackId": 7, "trackName": "Something", "collectionId": 9, "artistName": "B"},
                {"wrapperType": "collection", "collectionId": 9, "collectionName": "Abbey Road"},
            ]
        }
        resolver = MetadataResolver(app, client=json_client(payload, seen))

        results = resolver.search_tracks("something")
        assert [c.id for c in results] == ["7"]
        assert results[0].title == "Something"
        assert seen[0].url.params["entity"] == "song"
        assert isinstance(resolver.source_for(ContentType.MUSIC), ITunesMusicSource)

    def test_album_tracks_use_music_source(self, app: AppContext) -> None:
        payload = {"results": [{"wrapperType": "track", "kind": "song", "trackId": 1, "trackName": "A", "trackNumber": 1}]}
        resolver = MetadataResolver(app, client=json_client(payload))
        assert [t.track_id for t in resolver.album_tracks("9")] == ["1"]


def test_get_year() -> None:
    assert get_year("2014-11-05") == "2014"
    assert get_year("") is None
    assert get_year("unknown") is None
