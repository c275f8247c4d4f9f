from conftest import IMPORT_TIME
from scrobble_stats.config.store import SQLiteStore
from scrobble_stats.core.extractor import extract_scrobble
from scrobble_stats.core.resolver import EntityResolver
from scrobble_stats.models import Album, Artist, Track


class ArtistLookupMissingStore(SQLiteStore):
    """Store whose artist lookup finds nothing after the insert."""

    def select_one(self, table, key_columns, key_values):
        if table == 'artists':
            return None
        return super().select_one(table, key_columns, key_values)


def _scrobble(**record):
    return extract_scrobble(record, IMPORT_TIME)


def test_resolve_creates_entities_and_play(store, logger) -> None:
    resolver = EntityResolver(store, logger)

    resolution = resolver.resolve(_scrobble(
        name='Song A',
        artist={'#text': 'Band X', 'mbid': 'x-mbid'},
        album={'#text': 'LP1', 'mbid': 'lp1-mbid'},
        streamable='1',
        url='https://example.com/song-a',
        date={'uts': '1000000000', '#text': 'd'},
    ))

    assert resolution.ok
    artist = Artist.from_row(store.select_one('artists', ('name',), ('Band X',)))
    album = Album.from_row(store.select_one('albums', ('title', 'artist_id'), ('LP1', artist.id)))
    track = Track.from_row(store.select_one('tracks', ('id',), (resolution.track_id,)))
    play = store.select_one('scrobbles', ('id',), (resolution.scrobble_id,))

    assert artist.mbid == 'x-mbid'
    assert album.mbid == 'lp1-mbid'
    assert (track.title, track.artist_id, track.album_id) == ('Song A', artist.id, album.id)
    assert track.streamable is True
    assert track.url == 'https://example.com/song-a'
    assert play['track_id'] == track.id
    assert play['timestamp'] == '2001-09-09T01:46:40.000Z'
    assert play['date_text'] == 'd'


def test_resolve_reuses_existing_entities(store, logger) -> None:
    resolver = EntityResolver(store, logger)

    first = resolver.resolve(_scrobble(name='Song A', artist='Band X', album='LP1'))
    second = resolver.resolve(_scrobble(name='Song A', artist={'#text': 'Band X'}, album={'#text': 'LP1'}))

    assert first.track_id == second.track_id
    assert first.scrobble_id != second.scrobble_id


def test_later_metadata_does_not_overwrite_artist(store, logger) -> None:
    resolver = EntityResolver(store, logger)

    resolver.resolve(_scrobble(artist={'#text': 'Band X', 'mbid': 'original'}))
    resolver.resolve(_scrobble(artist={'#text': 'Band X', 'mbid': 'changed'}))

    assert store.select_one('artists', ('name',), ('Band X',))['mbid'] == 'original'


def test_albumless_tracks_share_unknown_album_per_artist(store, logger) -> None:
    resolver = EntityResolver(store, logger)

    one = resolver.resolve(_scrobble(name='Single 1', artist='Band X'))
    two = resolver.resolve(_scrobble(name='Single 2', artist='Band X', album='Unknown Album'))
    other = resolver.resolve(_scrobble(name='Single 1', artist='Band Y'))

    def album_of(resolution):
        return store.select_one('tracks', ('id',), (resolution.track_id,))['album_id']

    assert album_of(one) == album_of(two)
    assert album_of(one) != album_of(other)
    assert store.select_one('albums', ('id',), (album_of(one),))['title'] == 'Unknown Album'


def test_missing_lookup_skips_record(db, logger) -> None:
    store = ArtistLookupMissingStore.connect(db.db_path)
    try:
        resolution = EntityResolver(store, logger).resolve(_scrobble(name='Song', artist='Band X'))
    finally:
        store.close()

    assert not resolution.ok
    assert 'Band X' in resolution.skip_reason
    assert db.get_table_counts()['scrobbles'] == 0


def test_failed_insert_reason_is_reported(store, logger) -> None:
    store.conn.execute("""
        CREATE TRIGGER reject_album BEFORE INSERT ON albums
        BEGIN
            SELECT RAISE(ABORT, 'albums are read-only');
        END
    """)

    resolution = EntityResolver(store, logger).resolve(_scrobble(name='Song', artist='Band X', album='LP1'))

    assert not resolution.ok
    assert 'albums are read-only' in resolution.skip_reason
