from .entities import lowest


def policy(env):
    # Strategy: always answer the word closest to the floor, since it is the next one to cost a life.
    # Type its displayed text in full and submit on the same frame; with nothing falling, type nothing.
    target = lowest(env.engine.entities)
    if target is None:
        return ("", 0)
    return (target.text, 1)
