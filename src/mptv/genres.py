# genres.py
import logging
from typing import Dict, List

from mptv.config import PluginConfiguration
from mptv.models import ProgramInfo

# canonical tag -> ProgramInfo flag
GENRE_FLAGS = {
    "movie": "is_movie",
    "sports": "is_sports",
    "news": "is_news",
    "kids": "is_kids",
    "series": "is_series",
}


class GenreMapper:
    """Classifies backend genre strings using the configured mapping table.

    Build one per batch of programs so configuration changes are picked up.
    """

    def __init__(self, configuration: PluginConfiguration):
        self.logger = logging.getLogger(__name__)
        self._lookup: Dict[str, List[str]] = {}

        for tag, names in configuration.genre_mappings.items():
            for name in names:
                self._lookup.setdefault(name.strip().lower(), []).append(tag)

    def map_genre(self, genre: str) -> List[str]:
        """Returns the canonical tags for a genre, or the genre itself if unmapped"""
        tags = self._lookup.get(genre.strip().lower())
        if not tags:
            self.logger.debug(f"No genre mapping for '{genre}'")
            return [genre]
        return list(tags)

    def populate_program_genres(self, program: ProgramInfo) -> None:
        """Adds canonical tags for the program's genres and sets the matching flags"""
        for genre in list(program.genres):
            for tag in self.map_genre(genre):
                if tag not in program.genres:
                    program.genres.append(tag)

                flag = GENRE_FLAGS.get(tag.lower())
                if flag:
                    setattr(program, flag, True)
