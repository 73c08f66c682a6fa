"""Boilerplate code for a tqdm progress bar."""

import tqdm


def progress_bar(display, total, description):
    """Get a tqdm progress bar interface.

    When display is False the returned bar is disabled and does nothing.

    Args:
        display (bool):
            if true, a real progress bar will be shown.
        total (int):
            the total size of the progress bar.
        description (str):
            description to print in progress bar.
    """
    return tqdm.tqdm(total=total, desc=description, disable=not display)
