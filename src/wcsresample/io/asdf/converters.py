from asdf.extension import Converter

MAPPING_TAG = "asdf://wcsresample.org/tags/mapping-1.0.0"


class MappingConverter(Converter):
    tags = [MAPPING_TAG]
    types = [
        "wcsresample.projections.Tan",
        "wcsresample.projections.Sin",
    ]

    def to_yaml_tree(self, obj, tag, ctx):
        node = obj.to_dict()
        node['projection'] = node.pop('type')
        if node['sip'] is None:
            del node['sip']
        return node

    def from_yaml_tree(self, node, tag, ctx):
        from wcsresample.projections import Tan, Sin

        classes = {cls.__name__: cls for cls in (Tan, Sin)}
        data = dict(node)
        try:
            cls = classes[data.pop('projection')]
        except KeyError as e:
            raise ValueError(f"Unknown projection class {e.args[0]!r}") from e
        return cls.from_dict(data)
