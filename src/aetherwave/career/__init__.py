"""Career progression: releases, genre evolution, and career overviews."""
