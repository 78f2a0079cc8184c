import argparse
import sys
from concurrent.futures import ThreadPoolExecutor

from loguru import logger

from slideshow import (
    InputFormatError,
    Slide,
    Slideshow,
    compute_interest_factor,
    output_path_for,
    parse_input,
    score,
    write_solution,
)
from slideshow_config import JsonSettings, SequencerConfig, SettingsError, load_sequencer_config
from slideshow_logging import init_logging


DEFAULT_INPUTS = [
    'data/a_example.txt',
    'data/b_lovely_landscapes.txt',
    'data/c_memorable_moments.txt',
    'data/d_pet_pictures.txt',
    'data/e_shiny_selfies.txt',
]


def remove_pair(pool, i, j):
    """Remove pool positions i and j, returning the two entries in (i, j) order."""
    first = pool.pop(i)
    # Popping i shifted every later position down by one.
    second = pool.pop(j - 1) if i < j else pool.pop(j)
    return first, second


def best_horizontal(last, photos, pool, window):
    best_score = 0
    best_index = None
    for i in range(min(window, len(pool))):
        s = compute_interest_factor(last.tags, photos[pool[i]].tag_set)
        if best_index is None or s > best_score:
            best_score = s
            best_index = i
    return best_index, best_score


def best_vertical(last, photos, pool, outer_window, inner_window):
    best_score = 0
    best_pair = None
    inner = min(inner_window, len(pool))
    for i in range(min(outer_window, len(pool))):
        for j in range(inner):
            if i == j:
                continue
            s = score(last, Slide.dual(photos[pool[i]], photos[pool[j]]))
            if best_pair is None or s > best_score:
                best_score = s
                best_pair = (i, j)
    return best_pair, best_score


def optimize_slideshow(photo_set, config=None):
    """Greedily sequence the photo set into a slideshow.

    Each step scores candidate slides from bounded windows of the remaining
    pools against the last slide and appends the best one. Horizontal
    candidates win ties against vertical pairs.
    """
    config = config or SequencerConfig()
    h_photos = photo_set.horizontal
    v_photos = photo_set.vertical

    # Pools hold arena indices in parse order
    h_pool = list(range(len(h_photos)))
    v_pool = list(range(len(v_photos)))
    slideshow = Slideshow()

    if h_pool:
        slideshow.append(Slide.single(h_photos[h_pool.pop(0)]))
    elif len(v_pool) >= 2:
        first, second = remove_pair(v_pool, 0, 1)
        slideshow.append(Slide.dual(v_photos[first], v_photos[second]))
    else:
        if v_pool:
            logger.warning("A single vertical photo cannot form a slide, returning an empty slideshow")
        return slideshow

    while True:
        last = slideshow[-1]

        h_index, h_score = best_horizontal(last, h_photos, h_pool, config.horizontal_window)
        v_pair, v_score = best_vertical(
            last, v_photos, v_pool, config.vertical_outer_window, config.vertical_inner_window
        )

        if (len(h_pool) % config.progress_modulus == config.progress_remainder
                or len(v_pool) % config.progress_modulus == config.progress_remainder):
            logger.info("{} horizontal and {} vertical photos todo", len(h_pool), len(v_pool))

        if h_index is not None and h_score >= v_score:
            slideshow.append(Slide.single(h_photos[h_pool.pop(h_index)]))
        elif v_pair is not None:
            first, second = remove_pair(v_pool, *v_pair)
            slideshow.append(Slide.dual(v_photos[first], v_photos[second]))
        else:
            break

    if v_pool:
        logger.warning("{} vertical photo(s) left without a partner", len(v_pool))

    return slideshow


def process_file(input_file, config=None, output_file=None):
    """Read, sequence and write one input set. Returns the slideshow score."""
    photo_set = parse_input(input_file)
    logger.info(
        "Read {} photos from {} ({} horizontal, {} vertical, {} tags)",
        len(photo_set), input_file, len(photo_set.horizontal),
        len(photo_set.vertical), len(photo_set.vocabulary),
    )

    slideshow = optimize_slideshow(photo_set, config)
    total = slideshow.total_score()
    logger.info("Found score {} for {}", total, input_file)

    output_file = output_file or output_path_for(input_file)
    write_solution(slideshow, output_file)
    logger.info("Solution written to {}", output_file)
    return total


def run_all(input_files, config=None, output_file=None):
    """Process every input in its own worker thread and wait for all of them.

    Returns a dict mapping each input to its score, or None when it failed.
    """
    results = {}
    with ThreadPoolExecutor(max_workers=max(len(input_files), 1)) as executor:
        futures = {
            path: executor.submit(process_file, path, config, output_file)
            for path in input_files
        }
        for path, future in futures.items():
            try:
                results[path] = future.result()
            except (OSError, InputFormatError) as e:
                logger.error("Failed to process {}: {}", path, e)
                results[path] = None
    return results


def positive_int(value):
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value!r}")
    return number


def build_parser():
    parser = argparse.ArgumentParser(description="Greedy Photo Slideshow Sequencer")
    parser.add_argument("input_file", nargs="?",
                        help="Path to a single input dataset (default: the bundled data/ batch)")
    parser.add_argument("--output", help="Path to output solution file (single input only)")
    parser.add_argument("--settings", help="JSON settings file with sequencer.* keys")
    parser.add_argument("--horizontal-window", type=positive_int,
                        help="Number of remaining horizontal photos scanned per step")
    parser.add_argument("--vertical-outer-window", type=positive_int,
                        help="Outer bound of the vertical pair search")
    parser.add_argument("--vertical-inner-window", type=positive_int,
                        help="Inner bound of the vertical pair search")
    parser.add_argument("--log-level", default="INFO", help="Log level (default: INFO)")
    parser.add_argument("--log-file", help="Also write logs to this file")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.output and not args.input_file:
        parser.error("--output requires an explicit input_file")

    init_logging(args.log_level, args.log_file)

    try:
        settings = JsonSettings(args.settings) if args.settings else None
        config = load_sequencer_config(settings).with_overrides(
            horizontal_window=args.horizontal_window,
            vertical_outer_window=args.vertical_outer_window,
            vertical_inner_window=args.vertical_inner_window,
        )
    except SettingsError as e:
        parser.error(str(e))

    input_files = [args.input_file] if args.input_file else DEFAULT_INPUTS
    results = run_all(input_files, config, args.output)
    return 0 if all(total is not None for total in results.values()) else 1


if __name__ == "__main__":
    sys.exit(main())
