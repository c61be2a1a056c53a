"""Tag vocabularies that are never counted as components."""

HTML_TAGS = frozenset({
    'a', 'abbr', 'address', 'area', 'article', 'aside', 'audio',
    'b', 'base', 'bdi', 'bdo', 'blockquote', 'body', 'br', 'button',
    'canvas', 'caption', 'cite', 'code', 'col', 'colgroup',
    'data', 'datalist', 'dd', 'del', 'details', 'dfn', 'dialog', 'div', 'dl', 'dt',
    'em', 'embed', 'fieldset', 'figcaption', 'figure', 'footer', 'form',
    'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'head', 'header', 'hgroup', 'hr', 'html',
    'i', 'iframe', 'img', 'input', 'ins', 'kbd', 'label', 'legend', 'li', 'link',
    'main', 'map', 'mark', 'menu', 'meta', 'meter', 'nav', 'noscript',
    'object', 'ol', 'optgroup', 'option', 'output', 'p', 'param', 'picture', 'pre', 'progress',
    'q', 'rp', 'rt', 'ruby', 's', 'samp', 'script', 'search', 'section', 'select', 'small',
    'source', 'span', 'strong', 'style', 'sub', 'summary', 'sup',
    'table', 'tbody', 'td', 'textarea', 'tfoot', 'th', 'thead', 'time', 'title', 'tr', 'track',
    'u', 'ul', 'var', 'video', 'wbr',
})

SVG_TAGS = frozenset({
    'svg', 'animate', 'animateMotion', 'animateTransform', 'circle', 'clipPath', 'defs', 'desc',
    'ellipse', 'feBlend', 'feColorMatrix', 'feComposite', 'feGaussianBlur', 'feOffset',
    'filter', 'foreignObject', 'g', 'image', 'line', 'linearGradient', 'marker', 'mask',
    'path', 'pattern', 'polygon', 'polyline', 'radialGradient', 'rect', 'stop', 'symbol',
    'text', 'textPath', 'tspan', 'use', 'view',
})

# Framework built-ins rendered by the runtime itself
BAN_TAGS = frozenset({
    'template', 'slot', 'component', 'transition', 'transition-group', 'TransitionGroup',
    'keep-alive', 'KeepAlive', 'teleport', 'Teleport', 'suspense', 'Suspense', 'Fragment',
})


def native_tags():
    """Every tag name filtered out before aggregation."""
    return sorted(HTML_TAGS | SVG_TAGS | BAN_TAGS)


def is_native(tag: str) -> bool:
    return tag in HTML_TAGS or tag in SVG_TAGS or tag in BAN_TAGS
