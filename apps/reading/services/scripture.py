"""
Canonical verse text from holybible.or.kr (Korean Revised Version).

Missing text is never an error: callers fall back to the generated passage
when this returns an empty list.
"""
import logging
import requests
from bs4 import BeautifulSoup
from typing import Dict, List
from django.conf import settings


logger = logging.getLogger(__name__)

SCRIPTURE_SOURCE_URL = 'http://www.holybible.or.kr/B_GAE/cgi/bibleftxt.php'

# 3-letter book code -> book index used by the source site
BOOK_INDEX = {
    'gen': 1, 'exo': 2, 'lev': 3, 'num': 4, 'deu': 5, 'jos': 6, 'jdg': 7, 'rut': 8, 'sa1': 9, 'sa2': 10,
    'ki1': 11, 'ki2': 12, 'ch1': 13, 'ch2': 14, 'ezr': 15, 'neh': 16, 'est': 17, 'job': 18, 'psa': 19, 'pro': 20,
    'ecc': 21, 'sol': 22, 'isa': 23, 'jer': 24, 'lam': 25, 'eze': 26, 'dan': 27, 'hos': 28, 'joe': 29, 'amo': 30,
    'oba': 31, 'jon': 32, 'mic': 33, 'nah': 34, 'hab': 35, 'zep': 36, 'hag': 37, 'zec': 38, 'mal': 39,
    'mat': 40, 'mar': 41, 'luk': 42, 'joh': 43, 'act': 44, 'rom': 45, 'co1': 46, 'co2': 47, 'gal': 48, 'eph': 49,
    'phi': 50, 'col': 51, 'th1': 52, 'th2': 53, 'ti1': 54, 'ti2': 55, 'tit': 56, 'phm': 57, 'heb': 58, 'jam': 59,
    'pe1': 60, 'pe2': 61, 'jo1': 62, 'jo2': 63, 'jo3': 64, 'jud': 65, 'rev': 66,
}


def parse_chapter_html(html: str) -> List[Dict]:
    """
    Extract verses from a chapter page.

    Each verse is an <li> holding a <font class="tk4l">; dictionary links
    inside the verse are flattened to text.
    """
    soup = BeautifulSoup(html, 'html.parser')
    verses = []
    for font in soup.select('li font.tk4l'):
        text = font.get_text(' ', strip=True)
        text = ' '.join(text.split())
        if text:
            verses.append({'verse': len(verses) + 1, 'text': text})
    return verses


def fetch_chapter(book_code: str, chapter: int, timeout: int = 10) -> List[Dict]:
    """
    Fetch one chapter as an ordered list of {verse, text}.

    Args:
        book_code: 3-letter code (e.g. 'rom', 'co1')
        chapter: chapter number

    Returns:
        list of verses, empty when the source is unreachable or has no text

    Raises:
        ValueError: unknown book code
    """
    book_index = BOOK_INDEX.get((book_code or '').lower())
    if not book_index:
        raise ValueError(f"Invalid book code: {book_code}")

    url = getattr(settings, 'SCRIPTURE_SOURCE_URL', SCRIPTURE_SOURCE_URL)
    params = {'VR': 'GAE', 'VL': book_index, 'CN': chapter, 'CV': 99}

    try:
        response = requests.get(url, params=params, timeout=timeout)
    except requests.exceptions.RequestException as e:
        logger.warning(f"Scripture fetch failed for {book_code} {chapter}: {e}")
        return []

    if response.status_code != 200:
        logger.warning(f"Scripture source returned HTTP {response.status_code} for {book_code} {chapter}")
        return []

    html = response.content.decode('euc-kr', errors='replace')
    verses = parse_chapter_html(html)
    if not verses:
        logger.warning(f"No verses found for {book_code} {chapter}")
    return verses


def verses_to_passage(verses: List[Dict]) -> str:
    return '\n'.join(f"{v['verse']}. {v['text']}" for v in verses)
