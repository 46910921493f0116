#!/usr/bin/env python3

# Interactive calculator: read a line, print its value or what's wrong with it

from . import calc

def main():
    try:
        while True:
            # Read lines until we either have a full expression or an error. The
            # lazy parse returns None while the input could still be the start of
            # a valid expression, e.g. "(1 +", so we ask for another line.
            line = ''
            while True:
                prompt = '>>> ' if not line else '... '
                next_line = input(prompt)
                if not line and not next_line.strip():
                    break
                # An empty continuation line means the user is done, so report
                # whatever is missing instead of prompting forever
                lazy = bool(next_line.strip())
                line = line + next_line + '\n'
                try:
                    result = calc.calculate(line, filename='<stdin>', lazy=lazy)
                except calc.EvalError as e:
                    e.print(line)
                    break
                if result is not None:
                    print('%s' % result)
                    break
    except EOFError:
        print()

if __name__ == '__main__':
    main()
