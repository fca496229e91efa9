"""Sub-package set aside for ring-buffer components; it holds no modules yet."""