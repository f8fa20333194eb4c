class Module:
    """Base class for layers and networks.

    Parameters are registered by name against the attribute that holds them,
    so in-place updates and reassignment are both reflected by
    ``parameters()``. Child modules contribute their parameters under a
    ``<child>_`` prefix.
    """

    def __init__(self):
        self._params = {}
        self._modules = {}

    def __str__(self):
        lines = ["Architecture:"]
        for name, module in self._modules.items():
            lines.append(f"  {name} ({module.describe()}):")
            for param_name, param in module.parameters().items():
                lines.append(f"    {param_name}: shape={tuple(param.shape)}, dtype={param.dtype}")
        for name, param in self._own_parameters().items():
            lines.append(f"  {name}: shape={tuple(param.shape)}, dtype={param.dtype}")
        return "\n".join(lines)

    def describe(self):
        return type(self).__name__

    @property
    def num_parameters(self):
        return sum(p.size for p in self.parameters().values())

    def register_parameter(self, name, attr=None):
        if name in self._params:
            raise ValueError(f"Parameter {name} already registered")
        self._params[name] = attr or name

    def register_module(self, name, module):
        if name in self._modules:
            raise ValueError(f"Module {name} already registered")
        self._modules[name] = module
        return module

    def modules(self):
        return dict(self._modules)

    def _own_parameters(self):
        return {name: getattr(self, attr) for name, attr in self._params.items()}

    def parameters(self):
        params = {}
        for module_name, module in self._modules.items():
            for name, param in module.parameters().items():
                params[f"{module_name}_{name}"] = param
        params.update(self._own_parameters())
        return params

    def forward(self, *args, **kwargs):
        raise NotImplementedError("Child class must implement forward()")

    def __call__(self, *args, **kwargs):
        return self.forward(*args, **kwargs)
