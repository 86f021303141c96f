"""Project-wide named constants.

Selector vocabulary and URIs come from the W3C Web Annotation model and
the IIIF Presentation API; default locations point at the Saint-Saens
C055_0 dataset that the tool was first built against.
"""

import re

# Temporal media fragment: optional leading '&', 't=', optional 'npt:',
# start, optional ',end'. Group 3 is start, group 6 is end.
TEMPORAL_FRAGMENT = re.compile(r"&?(t=)(npt:)?([0-9]+(\.[0-9]+)?)?(,([0-9]+(\.[0-9]+)?))?")

FRAGMENT_SELECTOR: str = "FragmentSelector"
SVG_SELECTOR: str = "SvgSelector"
MEDIA_FRAGMENTS_URI: str = "http://www.w3.org/TR/media-frags/"
SVG_NAMESPACE: str = "http://www.w3.org/2000/svg"

SOUND_TYPE: str = "Sound"
DEFAULT_AUDIO_FORMAT: str = "audio/mpeg"

DEFAULT_MANIFEST_ID: str = "https://example.org"
DEFAULT_MANIFEST_LABEL: str = "Combined manifest 1"
DEFAULT_CANVAS_LABEL: str = "Canvas 1"
DEFAULT_ANNOTATION_BASE: str = "https://example/image-anno"

DEFAULT_CONFIG_PATH: str = "config/scoresync.json"
DEFAULT_OUTPUT_PATH: str = "combined-manifest.json"

LOCAL_SOURCES: dict[str, str] = {
    "audio_manifest": "scripts/data/audio-manifest.json",
    "image_manifest": "scripts/data/image-manifest.json",
    "audio_annotations": "scripts/data/audio-annotations.json",
    "image_annotations": "scripts/data/image-annotations.json",
}

# Published copies of the same four documents. The audio track of this
# manifest sits on canvas 2.
REMOTE_SOURCES: dict[str, str] = {
    "audio_manifest": "https://openapi.bnf.fr/iiif/presentation/v3/ark:/12148/bpt6k88448791/manifest.json",
    "image_manifest": "https://gallica.bnf.fr/iiif/ark:/12148/bpt6k11620688/manifest.json",
    "audio_annotations": (
        "https://neuma.huma-num.fr/rest/collections/"
        "all:collabscore:saintsaens-audio:C055_0/_annotations/time-frame/_all/"
    ),
    "image_annotations": (
        "https://neuma.huma-num.fr/rest/collections/"
        "all:collabscore:saintsaens-audio:C055_0/_annotations/image-region/note-region/"
    ),
}
REMOTE_CANVAS_INDEX: int = 2
