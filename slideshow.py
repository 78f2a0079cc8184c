from dataclasses import dataclass, field

from loguru import logger


INPUT_MARKER = 'txt'
RESULT_MARKER = 'result'


class InputFormatError(ValueError):
    """Raised when a photo description line cannot be parsed."""


class TagVocabulary:
    """Interns tag text into dense integer ids, in first-occurrence order.

    One vocabulary belongs to one input set. Ids start at 0 and are never
    released, so two parses of the same listing produce the same ids.
    """

    def __init__(self):
        self._next_id = 0
        self._ids = {}

    def intern(self, tag):
        tag_id = self._ids.get(tag)
        if tag_id is None:
            tag_id = self._next_id
            self._ids[tag] = tag_id
            self._next_id += 1
        return tag_id

    def get(self, tag, default=None):
        return self._ids.get(tag, default)

    def __len__(self):
        return self._next_id

    def __contains__(self, tag):
        return tag in self._ids


@dataclass(frozen=True)
class HorizontalPhoto:
    id: int
    tags: tuple
    tag_set: frozenset = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'tag_set', frozenset(self.tags))


@dataclass(frozen=True)
class VerticalPhoto:
    id: int
    tags: tuple
    tag_set: frozenset = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'tag_set', frozenset(self.tags))


@dataclass
class PhotoSet:
    """Parsed input: the tag vocabulary plus one photo arena per orientation."""
    vocabulary: TagVocabulary
    horizontal: list = field(default_factory=list)
    vertical: list = field(default_factory=list)
    declared_count: int = 0

    def __len__(self):
        return len(self.horizontal) + len(self.vertical)


def parse_photos(text):
    lines = text.splitlines()
    if not lines or not lines[0].strip():
        raise InputFormatError("line 1: missing photo count")
    try:
        declared_count = int(lines[0].strip())
    except ValueError:
        raise InputFormatError(f"line 1: invalid photo count {lines[0].strip()!r}") from None

    photo_set = PhotoSet(vocabulary=TagVocabulary(), declared_count=declared_count)
    vocabulary = photo_set.vocabulary
    photo_id = 0

    for line_no, line in enumerate(lines[1:], 2):
        parts = line.split()
        if not parts:
            continue
        orientation = parts[0]  # 'H' or 'V'
        if orientation not in ('H', 'V'):
            raise InputFormatError(f"line {line_no}: unknown orientation {orientation!r}")
        try:
            num_tags = int(parts[1])
        except (IndexError, ValueError):
            raise InputFormatError(f"line {line_no}: missing or invalid tag count") from None
        tags = parts[2:2+num_tags]
        if num_tags < 0 or len(tags) < num_tags:
            raise InputFormatError(f"line {line_no}: expected {num_tags} tags, found {len(tags)}")

        tag_ids = tuple(sorted({vocabulary.intern(t) for t in tags}))
        if orientation == 'H':
            photo_set.horizontal.append(HorizontalPhoto(photo_id, tag_ids))
        else:
            photo_set.vertical.append(VerticalPhoto(photo_id, tag_ids))
        photo_id += 1

    if photo_id != declared_count:
        logger.warning("Header declares {} photos but {} were listed", declared_count, photo_id)

    return photo_set


def parse_input(filename):
    try:
        with open(filename, 'r', encoding='utf-8') as f:
            text = f.read()
    except UnicodeDecodeError as e:
        raise InputFormatError(f"{filename}: not valid UTF-8 ({e.reason} at byte {e.start})") from None
    return parse_photos(text)


class Slide:
    """One horizontal photo, or two vertical photos shown together.

    The slide refers to records of a photo arena and never copies them. Its
    tag set is the de-duplicated union of the constituent photos' tags.
    """

    __slots__ = ('photos', 'tags')

    def __init__(self, *photos):
        self.photos = photos
        if len(photos) == 1:
            self.tags = photos[0].tag_set
        else:
            self.tags = photos[0].tag_set | photos[1].tag_set

    @classmethod
    def single(cls, photo):
        return cls(photo)

    @classmethod
    def dual(cls, first, second):
        return cls(first, second)

    @property
    def is_dual(self):
        return len(self.photos) == 2

    @property
    def photo_ids(self):
        return tuple(p.id for p in self.photos)

    def effective_length(self):
        return len(self.tags)

    def contains(self, tag):
        return tag in self.tags

    def __eq__(self, other):
        if not isinstance(other, Slide):
            return NotImplemented
        return self.photos == other.photos

    def __hash__(self):
        return hash(self.photos)

    def __repr__(self):
        kind = 'Dual' if self.is_dual else 'Single'
        return f"{kind}{self.photo_ids}"


def compute_interest_factor(tags1, tags2):
    common = len(tags1 & tags2)
    only_in_1 = len(tags1) - common
    only_in_2 = len(tags2) - common
    return min(common, only_in_1, only_in_2)


def score(x, y):
    """Interest factor between two slides."""
    return compute_interest_factor(x.tags, y.tags)


class Slideshow:
    def __init__(self, slides=None):
        self.slides = list(slides or [])

    def append(self, slide):
        self.slides.append(slide)

    def __len__(self):
        return len(self.slides)

    def __iter__(self):
        return iter(self.slides)

    def __getitem__(self, index):
        return self.slides[index]

    def total_score(self):
        return sum(score(self.slides[i-1], self.slides[i]) for i in range(1, len(self.slides)))

    def serialize(self):
        lines = [str(len(self.slides))]
        for slide in self.slides:
            lines.append(" ".join(map(str, slide.photo_ids)))
        return "\n".join(lines) + "\n"


def output_path_for(input_path):
    # Only the first occurrence is substituted, even if it sits in a directory name.
    return str(input_path).replace(INPUT_MARKER, RESULT_MARKER, 1)


def write_solution(slideshow, output_file):
    """Write the slideshow to the output file."""
    with open(output_file, 'w') as f:
        f.write(slideshow.serialize())
