# query/hooks.py


class NoopHooks:
    def query_start(self, *_, **__):
        pass

    def query_end(self, *_, **__):
        pass

    def candidate_skipped(self, *_, **__):
        pass

    def error(self, *_, **__):
        pass
