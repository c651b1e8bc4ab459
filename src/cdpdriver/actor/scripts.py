"""JavaScript evaluated inside the page.

The page keeps the element reference table in ``document.cdpElements``
(reference id -> node) and ``document.cdpElementIds`` (node -> reference id,
a WeakMap). Templates use ``%``-style substitution; every substituted string
is passed through :func:`js_string` so it lands in the script as a JSON
literal.
"""

import json

SWEEP_INTERVAL_MS = 3000
STALE_REFERENCE_MARKER = 'cdpdriver:stale-reference:'

WRAPPER_PRE = '(function() {'
WRAPPER_POST = '})();'


def js_string(value: str) -> str:
    """Render ``value`` as a JavaScript string literal."""
    return json.dumps(value)


def wrap(body: str) -> str:
    """Wrap ``body`` in an immediately invoked function."""
    return f'{WRAPPER_PRE}\n{body}\n{WRAPPER_POST}'


# Installs the reference table and a sweep that drops detached nodes.
# Evaluated on connect and registered for every new document.
REFERENCE_TABLE_SWEEP = wrap(f"""
    if (!document.cdpElements) document.cdpElements = new Map();
    if (!document.cdpElementIds) document.cdpElementIds = new WeakMap();
    if (document.cdpElementsScheduler) return false;
    document.cdpElementsScheduler = setInterval(function() {{
        var detached = [];
        document.cdpElements.forEach(function(node, id) {{
            if (!node || !node.isConnected) detached.push(id);
        }});
        for (var i = 0; i < detached.length; i++) document.cdpElements.delete(detached[i]);
    }}, {SWEEP_INTERVAL_MS});
    return true;
""")

FETCH_ELEMENT = """
    var referenceId = %s;
    var element = document.cdpElements ? document.cdpElements.get(referenceId) : undefined;
    if (!element || !element.isConnected) throw new Error('""" + STALE_REFERENCE_MARKER + """' + referenceId);
"""

# Locator snippets push matches into `elements`, searching under `referenceElement`
ID_LOCATOR = """
    var wanted = %s;
    var found = referenceElement === document
        ? document.getElementById(wanted)
        : referenceElement.querySelector('#' + CSS.escape(wanted));
    if (found) elements.push(found);
"""

CSS_LOCATOR = """
    var nodes = referenceElement.querySelectorAll(%s);
    for (var i = 0; i < nodes.length; i++) elements.push(nodes[i]);
"""

XPATH_LOCATOR = """
    var snapshot = document.evaluate(%s, referenceElement, null, XPathResult.ORDERED_NODE_SNAPSHOT_TYPE, null);
    for (var i = 0; i < snapshot.snapshotLength; i++) elements.push(snapshot.snapshotItem(i));
"""

# First %s: parent reference id ('' for the document). Second: a locator snippet.
FIND_ELEMENTS = wrap("""
    if (!document.cdpElements) document.cdpElements = new Map();
    if (!document.cdpElementIds) document.cdpElementIds = new WeakMap();
    var elements = [];
    var parentId = %s;
    var referenceElement = document;
    if (parentId !== '') {
        referenceElement = document.cdpElements.get(parentId);
        if (!referenceElement || !referenceElement.isConnected) throw new Error('""" + STALE_REFERENCE_MARKER + """' + parentId);
    }
    %s
    var ids = [];
    for (var i = 0; i < elements.length; i++) {
        var node = elements[i];
        var id = document.cdpElementIds.get(node);
        if (!id || document.cdpElements.get(id) !== node) {
            id = new Date().getTime() + '_' + Math.random().toString(36).substring(2);
            document.cdpElements.set(id, node);
            document.cdpElementIds.set(node, id);
        }
        ids.push(id);
    }
    return ids;
""")

# Page queries
GET_TITLE = wrap('return document.title;')
GET_CURRENT_URL = wrap('return document.URL;')
GET_PAGE_SOURCE = wrap('return document.documentElement.outerHTML;')
DOCUMENT_READY = wrap("return document.readyState === 'complete';")
HISTORY_BACK = 'window.history.back();'
HISTORY_FORWARD = 'window.history.forward();'


def element_script(body: str) -> str:
    """Prefix ``body`` with the reference lookup and wrap it.

    The resulting template takes the reference id as its first ``%s``.
    """
    return wrap(FETCH_ELEMENT + body)


# Element queries
IN_VIEW_CENTER_POINT = element_script("""
    var rect = element.getClientRects()[0];
    if (!rect) rect = element.getBoundingClientRect();
    var left = Math.max(0, Math.min(rect.x, rect.x + rect.width));
    var right = Math.min(window.innerWidth, Math.max(rect.x, rect.x + rect.width));
    var top = Math.max(0, Math.min(rect.y, rect.y + rect.height));
    var bottom = Math.min(window.innerHeight, Math.max(rect.y, rect.y + rect.height));
    return {x: 0.5 * (left + right), y: 0.5 * (top + bottom)};
""")

GET_RECT = element_script("""
    var rect = element.getBoundingClientRect();
    return {x: rect.x, y: rect.y, width: rect.width, height: rect.height};
""")

IS_DISPLAYED = element_script("""
    var style = window.getComputedStyle(element);
    if (style.display === 'none' || style.visibility === 'hidden' || style.opacity === '0') return false;
    var rect = element.getBoundingClientRect();
    return rect.width > 0 && rect.height > 0
        && rect.x < window.innerWidth && rect.y < window.innerHeight
        && rect.x + rect.width > 0 && rect.y + rect.height > 0;
""")

# Takes the reference id, then the x and y of the point to probe
IS_ELEMENT_OBSCURED = element_script("""
    var atPoint = document.elementFromPoint(%s, %s);
    return !(element === atPoint || element.contains(atPoint));
""")

IS_ENABLED = element_script('return element.disabled === undefined || element.disabled === false;')

IS_SELECTED = element_script('return Boolean(element.selected || element.checked);')

GET_ATTRIBUTE = element_script('return element.getAttribute(%s);')

GET_CSS_VALUE = element_script('return window.getComputedStyle(element).getPropertyValue(%s);')

GET_INNER_TEXT = element_script('return element.innerText;')

GET_SCROLL_HEIGHT = element_script('return element.scrollHeight;')

GET_SCROLL_LEFT = element_script('return element.scrollLeft;')

GET_SCROLL_TOP = element_script('return element.scrollTop;')

# Element actions
SCROLL_BY = element_script('element.scrollBy(%s, %s); return true;')

SCROLL_INTO_VIEW = element_script("""
    if (element.scrollIntoViewIfNeeded) element.scrollIntoViewIfNeeded(true);
    else element.scrollIntoView({block: 'center', inline: 'center'});
    return true;
""")

APPEND_VALUE = element_script("""
    element.value = element.value + %s;
    element.dispatchEvent(new Event('input', {bubbles: true}));
    element.dispatchEvent(new Event('change', {bubbles: true}));
    return true;
""")

CLEAR_VALUE = element_script("""
    element.value = '';
    element.dispatchEvent(new Event('input', {bubbles: true}));
    element.dispatchEvent(new Event('change', {bubbles: true}));
    return true;
""")

# Bounding rect in document coordinates, as Page.captureScreenshot clips expect
GET_DOCUMENT_RECT = element_script("""
    var rect = element.getBoundingClientRect();
    return {x: rect.x + window.scrollX, y: rect.y + window.scrollY, width: rect.width, height: rect.height};
""")
